from querycraft.embeddings.base import Embeddings, mean_embedding
from querycraft.embeddings.openai import OpenAIEmbeddings

__all__ = ["Embeddings", "OpenAIEmbeddings", "mean_embedding"]
