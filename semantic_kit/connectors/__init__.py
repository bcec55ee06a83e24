"""
Vector store connectors for Semantic Kit.

Import connectors from their subpackages; each one pulls in its own client
library.
"""
