"""
Shared constants for Semantic Kit.
"""

# Message keys and roles, in the litellm / OpenAI chat shape
ROLE = "role"
CONTENT = "content"
NAME = "name"
USER = "user"
ASSISTANT = "assistant"
SYSTEM = "system"
TOOL = "tool"
TOOL_CALLS = "tool_calls"
TOOL_CALL_ID = "tool_call_id"
MESSAGES = "messages"
MODEL = "model"
TOOLS = "tools"
TOOL_CHOICE = "tool_choice"

# Separator between plugin and function names in tool definitions
FUNCTION_NAME_SEPARATOR = "-"

DEFAULT_COMPLETION_MODEL = "gpt-4o-mini"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS = 5

# Vector store defaults
DEFAULT_SEARCH_LIMIT = 3
DEFAULT_COLLECTIONS_TABLE = "collections"
DEFAULT_COLLECTION_ID_COLUMN = "collectionId"
DEFAULT_COLLECTION_TABLE_PREFIX = "skcollection_"
DEFAULT_REDIS_KEY_PREFIX_SEPARATOR = ":"
VECTOR_SCORE_FIELD = "vector_score"

DEFAULT_COLLECTION_NAME = "memories"
DEFAULT_EMBEDDING_DIMENSIONS = 1536
DEFAULT_CONTEXT_TOKEN_LIMIT = 10000
