"""
Error taxonomy
---------------
Every failure the core distinguishes has its own exception type so callers
can scope recovery precisely:

  ValidationError   -- bad client input (empty question), maps to HTTP 400
  ParseError        -- document-parsing collaborator failed for one file
  EmbeddingError    -- embedding collaborator failed
  VectorStoreError  -- vector database create/add/query/delete failed
  GenerationError   -- language model call failed
  RegistryError     -- collection registry could not be read, written or reset

Collaborator adapters raise these `from` the underlying library exception so
the original traceback survives in the logs.
"""
from __future__ import annotations


class DocQAError(Exception):
    """Base class for all errors raised by the docqa core."""


class ValidationError(DocQAError):
    """The caller supplied an unusable request (e.g. an empty question)."""


class ParseError(DocQAError):
    """The parsing collaborator could not turn a file into chunks."""


class EmbeddingError(DocQAError):
    """The embedding collaborator failed to return a vector."""


class VectorStoreError(DocQAError):
    """A vector store operation failed."""


class GenerationError(DocQAError):
    """The generation collaborator failed to produce an answer."""


class RegistryError(DocQAError):
    """The collection registry could not be read, written or reset."""
