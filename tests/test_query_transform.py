"""
Tests for query transforms.
"""

import pytest

from querycraft.filters import EQ
from querycraft.node import QueryBundle
from querycraft.query_transform import HyDEQueryTransform, IdentityQueryTransform
from querycraft.retriever import VectorIndexRetriever
from querycraft.vector_store import SimpleVectorStore

from conftest import MockEmbeddings, MockLLM


class TestIdentityQueryTransform:
    """Test suite for IdentityQueryTransform"""

    @pytest.mark.asyncio
    async def test_unchanged(self):
        """Test that the query passes through"""
        bundle = await IdentityQueryTransform().arun("capital of France")
        assert bundle.query_str == "capital of France"
        assert bundle.embedding_strs == ["capital of France"]


class TestHyDEQueryTransform:
    """Test suite for HyDEQueryTransform"""

    @pytest.mark.asyncio
    async def test_embeds_hypothetical_document(self):
        """Test that the passage is embedded while the query text is kept"""
        llm = MockLLM(default_response="Paris is the capital of France.")
        transform = HyDEQueryTransform(llm=llm)

        bundle = await transform.arun("What is the capital of France?")

        assert bundle.query_str == "What is the capital of France?"
        assert bundle.embedding_strs == ["Paris is the capital of France.", "What is the capital of France?"]
        assert "Question: What is the capital of France?" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_without_original(self):
        """Test that only the passage is embedded when asked"""
        transform = HyDEQueryTransform(llm=MockLLM(default_response="passage"), include_original=False)
        bundle = await transform.arun("q")
        assert bundle.embedding_strs == ["passage"]

    @pytest.mark.asyncio
    async def test_keeps_filters(self):
        """Test that filters survive the transform and the input is untouched"""
        original = QueryBundle(query_str="q", filters=EQ("lang", "en"))
        bundle = await HyDEQueryTransform(llm=MockLLM()).arun(original)
        assert bundle.filters == original.filters
        assert bundle is not original
        assert original.custom_embedding_strs is None

    @pytest.mark.asyncio
    async def test_retriever_averages_embedding_strings(self):
        """Test that a vector retriever embeds every HyDE string"""
        embeddings = MockEmbeddings()
        store = SimpleVectorStore(embeddings=embeddings)
        retriever = VectorIndexRetriever(vector_store=store, embeddings=embeddings)
        bundle = QueryBundle(query_str="q", custom_embedding_strs=("paris", "france"))

        await retriever.aretrieve(bundle)

        assert embeddings.calls[-1] == ["paris", "france"]
