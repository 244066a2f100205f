"""
Tests for the vector stores and the vector index.
"""

import pytest
from qdrant_client import QdrantClient

from querycraft.filters import EQ, GTE
from querycraft.index import VectorIndex
from querycraft.node import Chunk, DocumentNode, Node
from querycraft.vector_store import QdrantVectorStore, SimpleVectorStore, cosine_similarity


def make_nodes():
    return [
        Chunk.from_text("Paris is the capital of France", chunk_index=0, metadata={"country": "france", "year": 2020}),
        Chunk.from_text("Berlin is the capital of Germany", chunk_index=1, metadata={"country": "germany", "year": 2021}),
        Chunk.from_text("Python code and Java code", chunk_index=2, metadata={"country": "none", "year": 2022}),
    ]


class TestCosineSimilarity:
    """Test suite for cosine similarity"""

    def test_values(self):
        """Test identical, orthogonal and zero vectors"""
        assert cosine_similarity([1.0, 0.0], [2.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


class TestSimpleVectorStore:
    """Test suite for SimpleVectorStore"""

    @pytest.mark.asyncio
    async def test_insert_embeds_missing(self, mock_embeddings):
        """Test that nodes without embeddings are embedded on insert"""
        store = SimpleVectorStore(embeddings=mock_embeddings)
        nodes = make_nodes()
        ids = await store.insert_nodes(nodes)
        assert ids == [n.id for n in nodes]
        assert all(n.has_embedding() for n in nodes)
        assert len(store) == 3

    @pytest.mark.asyncio
    async def test_insert_without_embeddings_model(self):
        """Test that a node without embedding and without a model is rejected"""
        store = SimpleVectorStore()
        with pytest.raises(ValueError):
            await store.insert_nodes([Node(text="no vector")])

    @pytest.mark.asyncio
    async def test_similarity_search_order(self, mock_embeddings):
        """Test that the closest node comes first"""
        store = SimpleVectorStore(embeddings=mock_embeddings)
        await store.insert_nodes(make_nodes())
        query = await mock_embeddings.embed_query("python code")
        results = await store.similarity_search(query, k=2)
        assert len(results) == 2
        assert results[0][0].text == "Python code and Java code"
        assert results[0][1] >= results[1][1]

    @pytest.mark.asyncio
    async def test_similarity_search_filters(self, mock_embeddings):
        """Test metadata filters and dict filters"""
        store = SimpleVectorStore(embeddings=mock_embeddings)
        await store.insert_nodes(make_nodes())
        query = await mock_embeddings.embed_query("capital")
        results = await store.similarity_search(query, k=5, filters=EQ("country", "germany"))
        assert [n.text for n, _ in results] == ["Berlin is the capital of Germany"]
        results = await store.similarity_search(query, k=5, filters={"country": "france"})
        assert [n.metadata["country"] for n, _ in results] == ["france"]

    @pytest.mark.asyncio
    async def test_get_and_delete(self, mock_embeddings):
        """Test lookup by id and deletion"""
        store = SimpleVectorStore(embeddings=mock_embeddings)
        nodes = make_nodes()
        await store.insert_nodes(nodes)
        assert (await store.get_node(nodes[0].id)).text == nodes[0].text
        await store.delete([nodes[0].id])
        assert await store.get_node(nodes[0].id) is None
        assert len(store) == 2


class TestQdrantVectorStore:
    """Test suite for QdrantVectorStore against an in-memory client"""

    @pytest.fixture
    def store(self, mock_embeddings):
        return QdrantVectorStore(
            client=QdrantClient(":memory:"),
            collection_name="test_collection",
            embeddings=mock_embeddings,
        )

    @pytest.mark.asyncio
    async def test_insert_and_search(self, store, mock_embeddings):
        """Test round trip through Qdrant, node class included"""
        nodes = make_nodes()
        await store.insert_nodes(nodes)
        results = await store.similarity_search(await mock_embeddings.embed_query("python code"), k=1)
        assert len(results) == 1
        node, score = results[0]
        assert isinstance(node, Chunk)
        assert node.id == nodes[2].id
        assert node.metadata["country"] == "none"
        assert score > 0

    @pytest.mark.asyncio
    async def test_filters(self, store, mock_embeddings):
        """Test metadata filters translated to Qdrant"""
        await store.insert_nodes(make_nodes())
        query = await mock_embeddings.embed_query("capital")
        results = await store.similarity_search(query, k=5, filters=GTE("year", 2021))
        assert {n.metadata["year"] for n, _ in results} == {2021, 2022}
        results = await store.similarity_search(query, k=5, filters={"country": "france"})
        assert [n.metadata["country"] for n, _ in results] == ["france"]

    @pytest.mark.asyncio
    async def test_get_and_delete(self, store):
        """Test lookup by non-UUID id and deletion"""
        node = Node(id="custom-id", text="Paris", embedding=[1.0] + [0.0] * 10)
        await store.insert_nodes([node])
        fetched = await store.get_node("custom-id")
        assert fetched is not None
        assert fetched.id == "custom-id"
        await store.delete(["custom-id"])
        assert await store.get_node("custom-id") is None

    def test_requires_vector_size(self):
        """Test that a collection cannot be created without a vector size"""
        with pytest.raises(ValueError):
            QdrantVectorStore(client=QdrantClient(":memory:"), collection_name="no_size")


class TestVectorIndex:
    """Test suite for VectorIndex"""

    @pytest.mark.asyncio
    async def test_add_documents_and_retrieve(self, mock_embeddings):
        """Test parsing, embedding and retrieval through the index"""
        index = VectorIndex(vector_store=SimpleVectorStore(), embeddings=mock_embeddings)
        documents = [
            DocumentNode.from_text("Paris is the capital of France."),
            DocumentNode.from_text("Python code is fun."),
        ]
        ids = await index.add_documents(documents)
        assert len(ids) == 2

        retriever = index.as_retriever(top_k=1)
        results = await retriever.aretrieve("Which city is the capital of France?")
        assert len(results) == 1
        assert "Paris" in results[0].text

    @pytest.mark.asyncio
    async def test_as_query_engine(self, mock_embeddings, mock_llm):
        """Test that the index builds a working query engine"""
        index = VectorIndex(vector_store=SimpleVectorStore(), embeddings=mock_embeddings)
        await index.add_nodes([Node(text="Paris is the capital of France.")])
        mock_llm.default_response = "Paris"
        engine = index.as_query_engine(llm=mock_llm, top_k=1)
        response = await engine.aquery("capital of France?")
        assert response.response == "Paris"
        assert len(response.source_nodes) == 1
