"""
Prompt templates for Semantic Kit.

A template is plain text with ``{{ ... }}`` blocks. A block holds one of:

* a variable, ``{{$name}}``
* a quoted value, ``{{'text'}}`` or ``{{"text"}}``
* a function call, ``{{plugin.function}}``, with an optional positional
  argument first and then named arguments, e.g.
  ``{{search.lookup $query limit='3'}}``

A ``{{`` that is never closed is kept as text.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, List, Optional, Union

from ..exceptions import TemplateSyntaxError
from .functions import KernelArguments

if TYPE_CHECKING:
    from .kernel import Kernel

# Set up logging
logger = logging.getLogger(__name__)

BLOCK_START = "{{"
BLOCK_END = "}}"
QUOTES = ("'", '"')

_NAME = re.compile(r"^[0-9A-Za-z_]+$")
_FUNCTION_ID = re.compile(r"^(?:([0-9A-Za-z_]+)\.)?([0-9A-Za-z_]+)$")


class TextBlock:
    def __init__(self, content: str):
        self.content = content

    def render(self, kernel: Kernel, arguments: KernelArguments) -> str:
        return self.content

    def __repr__(self) -> str:
        return f"TextBlock({self.content!r})"


class VarBlock:
    def __init__(self, name: str):
        self.name = name

    @classmethod
    def parse(cls, token: str) -> VarBlock:
        name = token[1:]
        if not name:
            raise TemplateSyntaxError("Variable name is empty")
        if not _NAME.match(name):
            raise TemplateSyntaxError(f"Invalid variable name {name!r}")
        return cls(name)

    def render(self, kernel: Kernel, arguments: KernelArguments) -> str:
        if self.name not in arguments:
            logger.warning(f"Variable ${self.name} not found in arguments")
            return ""
        value = arguments[self.name]
        return "" if value is None else str(value)

    def __repr__(self) -> str:
        return f"VarBlock({self.name!r})"


class ValBlock:
    def __init__(self, value: str):
        self.value = value

    @classmethod
    def parse(cls, token: str) -> ValBlock:
        if len(token) < 2 or token[0] not in QUOTES or token[-1] != token[0]:
            raise TemplateSyntaxError(f"Invalid value {token!r}")
        return cls(_unescape(token[1:-1]))

    def render(self, kernel: Kernel, arguments: KernelArguments) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ValBlock({self.value!r})"


ArgBlock = Union[VarBlock, ValBlock]


class NamedArgBlock:
    def __init__(self, name: str, value: ArgBlock):
        self.name = name
        self.value = value

    @classmethod
    def parse(cls, token: str) -> NamedArgBlock:
        name, _, raw_value = token.partition("=")
        if not _NAME.match(name):
            raise TemplateSyntaxError(f"Invalid argument name {name!r}")
        value = _parse_argument(raw_value)
        if value is None:
            raise TemplateSyntaxError(
                f"Argument {name} must be a variable or a quoted value, got {raw_value!r}"
            )
        return cls(name, value)

    def render(self, kernel: Kernel, arguments: KernelArguments) -> str:
        return self.value.render(kernel, arguments)

    def __repr__(self) -> str:
        return f"NamedArgBlock({self.name!r}, {self.value!r})"


class FunctionIdBlock:
    def __init__(self, plugin_name: Optional[str], function_name: str):
        self.plugin_name = plugin_name
        self.function_name = function_name

    @classmethod
    def parse(cls, token: str) -> FunctionIdBlock:
        match = _FUNCTION_ID.match(token)
        if not match:
            raise TemplateSyntaxError(f"Invalid function name {token!r}")
        return cls(match.group(1), match.group(2))

    def __repr__(self) -> str:
        return f"FunctionIdBlock({self.plugin_name!r}, {self.function_name!r})"


class CodeBlock:
    """The contents of one ``{{ ... }}`` block."""

    def __init__(self, tokens: List[Any]):
        self.tokens = tokens
        self._validate()

    @classmethod
    def parse(cls, content: str) -> CodeBlock:
        return cls([_parse_token(t) for t in _split_tokens(content)])

    def _validate(self) -> None:
        first, rest = self.tokens[0], self.tokens[1:]
        if isinstance(first, NamedArgBlock):
            raise TemplateSyntaxError(f"Block cannot start with a named argument: {first.name}")
        if isinstance(first, (VarBlock, ValBlock)):
            if rest:
                raise TemplateSyntaxError(
                    "Only a function call may be followed by arguments"
                )
            return

        seen_named = False
        for index, token in enumerate(rest):
            if isinstance(token, NamedArgBlock):
                seen_named = True
            elif isinstance(token, (VarBlock, ValBlock)):
                if index != 0 or seen_named:
                    raise TemplateSyntaxError(
                        "A positional argument must come first and only one is allowed"
                    )
            else:
                raise TemplateSyntaxError(f"Unexpected function name in arguments: {token!r}")

    @property
    def variable_names(self) -> List[str]:
        names = []
        for token in self.tokens:
            if isinstance(token, VarBlock):
                names.append(token.name)
            elif isinstance(token, NamedArgBlock) and isinstance(token.value, VarBlock):
                names.append(token.value.name)
        return names

    def render(self, kernel: Kernel, arguments: KernelArguments) -> str:
        first = self.tokens[0]
        if not isinstance(first, FunctionIdBlock):
            return first.render(kernel, arguments)

        function = kernel.get_function(first.plugin_name, first.function_name)
        call_arguments = arguments.merged(None)
        for token in self.tokens[1:]:
            if isinstance(token, NamedArgBlock):
                call_arguments[token.name] = token.render(kernel, arguments)
            else:
                if not function.metadata.parameters:
                    raise TemplateSyntaxError(
                        f"Function {function.fully_qualified_name} takes no arguments"
                    )
                call_arguments[function.metadata.parameters[0].name] = token.render(
                    kernel, arguments
                )
        return str(kernel.invoke(function, call_arguments))

    def __repr__(self) -> str:
        return f"CodeBlock({self.tokens!r})"


Block = Union[TextBlock, CodeBlock]


def _unescape(value: str) -> str:
    chars = []
    escaped = False
    for c in value:
        if escaped:
            chars.append(c)
            escaped = False
        elif c == "\\":
            escaped = True
        else:
            chars.append(c)
    if escaped:
        chars.append("\\")
    return "".join(chars)


def _end_of_quoted(text: str, start: int) -> int:
    """Index just past the closing quote of the value starting at ``start``."""
    quote = text[start]
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == quote:
            return i + 1
        i += 1
    raise TemplateSyntaxError(f"Unterminated value: {text[start:]!r}")


def _split_tokens(content: str) -> List[str]:
    tokens = []
    i = 0
    while i < len(content):
        if content[i].isspace():
            i += 1
            continue
        start = i
        while i < len(content) and not content[i].isspace():
            if content[i] in QUOTES:
                i = _end_of_quoted(content, i)
            else:
                i += 1
        tokens.append(content[start:i])
    return tokens


def _parse_argument(token: str) -> Optional[ArgBlock]:
    if token.startswith("$"):
        return VarBlock.parse(token)
    if token[:1] in QUOTES:
        return ValBlock.parse(token)
    return None


def _parse_token(token: str) -> Any:
    argument = _parse_argument(token)
    if argument is not None:
        return argument
    if "=" in token:
        return NamedArgBlock.parse(token)
    return FunctionIdBlock.parse(token)


def _find_block_end(template: str, start: int) -> Optional[int]:
    i = start
    while i < len(template):
        c = template[i]
        if c in QUOTES:
            try:
                i = _end_of_quoted(template, i)
            except TemplateSyntaxError:
                return None
            continue
        if template.startswith(BLOCK_END, i):
            return i
        i += 1
    return None


def tokenize(template: str) -> List[Block]:
    """
    Split a template into text and code blocks.

    Args:
        template: The template text

    Returns:
        The blocks in order

    Raises:
        TemplateSyntaxError: If a closed block has invalid contents
    """
    blocks: List[Block] = []
    text_start = 0
    pos = template.find(BLOCK_START)
    while pos != -1:
        end = _find_block_end(template, pos + len(BLOCK_START))
        if end is None:
            break
        if pos > text_start:
            blocks.append(TextBlock(template[text_start:pos]))
        content = template[pos + len(BLOCK_START) : end].strip()
        if content:
            blocks.append(CodeBlock.parse(content))
        text_start = end + len(BLOCK_END)
        pos = template.find(BLOCK_START, text_start)
    if text_start < len(template):
        blocks.append(TextBlock(template[text_start:]))
    return blocks


class PromptTemplate:
    """A parsed prompt template."""

    def __init__(self, template: str):
        self.template = template
        self.blocks = tokenize(template)

    @property
    def variable_names(self) -> List[str]:
        names: List[str] = []
        for block in self.blocks:
            if not isinstance(block, CodeBlock):
                continue
            for name in block.variable_names:
                if name not in names:
                    names.append(name)
        return names

    def render(self, kernel: Kernel, arguments: Optional[KernelArguments] = None) -> str:
        if arguments is None:
            arguments = KernelArguments()
        elif not isinstance(arguments, KernelArguments):
            arguments = KernelArguments(arguments)
        return "".join(block.render(kernel, arguments) for block in self.blocks)
