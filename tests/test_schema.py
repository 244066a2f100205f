"""
Tests for nodes, query bundles and response types.
"""

import pytest
from pydantic import ValidationError

from querycraft.node import Chunk, DocumentNode, IndexNode, Node, NodeType, QueryBundle
from querycraft.response import EMPTY_RESPONSE, Response, StreamingResponse, merge_source_nodes

from conftest import scored


async def deltas(*parts):
    for part in parts:
        yield part


class TestNodes:
    """Test suite for the node types"""

    def test_hash_depends_on_text_and_metadata(self):
        """Test that identical content hashes identically"""
        a = Node(text="Paris", metadata={"lang": "en"})
        b = Node(text="Paris", metadata={"lang": "en"})
        c = Node(text="Paris", metadata={"lang": "fr"})
        assert a.hash == b.hash
        assert a.hash != c.hash
        assert a.id != b.id

    def test_document_references_itself(self):
        """Test that a document is its own doc_id"""
        doc = DocumentNode.from_text("Some text", metadata={"source": "a.txt"})
        assert doc.doc_id == doc.id
        assert doc.node_type == NodeType.DOCUMENT
        assert doc.metadata == {"source": "a.txt"}

    def test_chunk(self):
        """Test chunk construction"""
        chunk = Chunk.from_text("part", chunk_index=2, start_char_idx=10, end_char_idx=14, doc_id="d1")
        assert chunk.node_type == NodeType.TEXT
        assert (chunk.chunk_index, chunk.start_char_idx, chunk.end_char_idx) == (2, 10, 14)
        assert chunk.doc_id == "d1"

    def test_index_node(self):
        """Test that index nodes carry their target"""
        node = IndexNode(text="Summary of the 2023 report", index_id="reports_2023")
        assert node.node_type == NodeType.INDEX
        assert node.index_id == "reports_2023"

    def test_metadata_str(self):
        """Test the metadata rendering used for chunk budgets"""
        node = Node(text="x", metadata={"title": "Paris", "year": 2024})
        assert node.get_metadata_str() == "title: Paris\nyear: 2024"

    def test_has_embedding(self):
        """Test embedding detection"""
        assert not Node(text="x").has_embedding()
        assert not Node(text="x", embedding=[]).has_embedding()
        assert Node(text="x", embedding=[0.1]).has_embedding()


class TestQueryBundle:
    """Test suite for QueryBundle"""

    def test_immutable(self):
        """Test that bundles cannot be edited in place"""
        bundle = QueryBundle(query_str="capital?")
        with pytest.raises(ValidationError):
            bundle.query_str = "other"

    def test_embedding_strs(self):
        """Test the strings to embed"""
        assert QueryBundle(query_str="q").embedding_strs == ["q"]
        bundle = QueryBundle(query_str="q", custom_embedding_strs=("passage", "q"))
        assert bundle.embedding_strs == ["passage", "q"]

    def test_from_query(self):
        """Test coercion of strings and bundles"""
        bundle = QueryBundle(query_str="q")
        assert QueryBundle.from_query(bundle) is bundle
        assert QueryBundle.from_query("q") == bundle
        assert str(bundle) == "q"


class TestResponse:
    """Test suite for Response"""

    def test_default_is_empty(self):
        """Test the empty answer"""
        assert str(Response()) == EMPTY_RESPONSE

    def test_formatted_sources(self):
        """Test source formatting and truncation"""
        response = Response(
            response="Paris",
            source_nodes=[scored("n1", "The capital of France\nis Paris.", 0.9)],
        )
        assert response.get_formatted_sources() == (
            "> Source (Node id: n1, score: 0.900): The capital of France is Paris."
        )
        assert response.get_formatted_sources(length=7).endswith(": The cap...")

    def test_merge_source_nodes(self):
        """Test that the first occurrence of a node wins"""
        a, b = scored("a", "A", 0.9), scored("b", "B", 0.5)
        merged = merge_source_nodes([a, b], [scored("a", "A", 0.1)])
        assert [n.id for n in merged] == ["a", "b"]
        assert merged[0].score == 0.9


class TestStreamingResponse:
    """Test suite for StreamingResponse"""

    @pytest.mark.asyncio
    async def test_consume_once(self):
        """Test that the stream is cached after the first read"""
        streaming = StreamingResponse(response_gen=deltas("Paris ", "is ", "the capital."))

        first = [delta async for delta in streaming.async_response_gen()]
        second = [delta async for delta in streaming.async_response_gen()]

        assert first == ["Paris ", "is ", "the capital."]
        assert second == ["Paris is the capital."]
        assert streaming.response_txt == "Paris is the capital."

    @pytest.mark.asyncio
    async def test_aget_response(self, paris_nodes):
        """Test materialization keeps sources and metadata"""
        streaming = StreamingResponse(response_gen=deltas("Paris"), source_nodes=paris_nodes, metadata={"k": 1})

        response = await streaming.aget_response()

        assert response.response == "Paris"
        assert response.source_nodes == paris_nodes
        assert response.metadata == {"k": 1}

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        """Test that an empty stream materializes to the empty answer"""
        response = await StreamingResponse(response_gen=deltas()).aget_response()
        assert response.response == EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_from_text(self):
        """Test an already materialized streaming response"""
        streaming = StreamingResponse.from_text("done")
        assert [d async for d in streaming.async_response_gen()] == ["done"]
        assert str(streaming) == "done"
