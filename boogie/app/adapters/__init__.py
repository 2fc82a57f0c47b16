"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .boogie_vec import BoogieVecClient
from .hash_embedder import HashEmbeddingAdapter
from .memory_index import InMemoryIndexClient
from .openai_embedder import OpenAIEmbeddingAdapter

__all__ = [
    "BoogieVecClient",
    "HashEmbeddingAdapter",
    "InMemoryIndexClient",
    "OpenAIEmbeddingAdapter",
]
