import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
from openai import APIConnectionError, APIError

from docchat.core.errors import EmbeddingError
from docchat.core.retry import RetryPolicy
from docchat.services.embedder import OpenAIEmbeddingGateway

FAST = RetryPolicy(attempts=3, initial_wait=0, max_wait=0, jitter=0)
REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def embedding_response(texts: list[str], reverse: bool = False) -> SimpleNamespace:
    data = [
        SimpleNamespace(index=i, embedding=[float(len(text)), float(i)])
        for i, text in enumerate(texts)
    ]
    if reverse:
        data.reverse()
    return SimpleNamespace(data=data)


class TestOpenAIEmbeddingGateway(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.client.embeddings.create.side_effect = lambda model, input: embedding_response(
            input, reverse=True
        )
        self.gateway = OpenAIEmbeddingGateway(
            self.client, model="test-model", retry_policy=FAST, batch_size=2, inter_batch_delay=0
        )

    def test_embed_batch_preserves_input_order(self) -> None:
        vectors = self.gateway.embed_batch(["a", "bb", "ccc"])

        self.assertEqual([v[0] for v in vectors], [1.0, 2.0, 3.0])
        self.assertEqual(self.client.embeddings.create.call_count, 2)
        first_call = self.client.embeddings.create.call_args_list[0]
        self.assertEqual(first_call.kwargs, {"model": "test-model", "input": ["a", "bb"]})

    def test_embed_returns_single_vector(self) -> None:
        self.assertEqual(self.gateway.embed("hello"), [5.0, 0.0])

    def test_empty_input_makes_no_request(self) -> None:
        self.assertEqual(self.gateway.embed_batch([]), [])
        self.client.embeddings.create.assert_not_called()

    def test_blank_text_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.gateway.embed_batch(["fine", "   "])
        self.client.embeddings.create.assert_not_called()

    def test_connection_errors_are_retried_then_wrapped(self) -> None:
        self.client.embeddings.create.side_effect = APIConnectionError(request=REQUEST)

        with self.assertRaises(EmbeddingError) as ctx:
            self.gateway.embed("hello")

        self.assertEqual(self.client.embeddings.create.call_count, 3)
        self.assertIsInstance(ctx.exception.__cause__, APIConnectionError)

    def test_transient_failure_recovers(self) -> None:
        self.client.embeddings.create.side_effect = [
            APIConnectionError(request=REQUEST),
            embedding_response(["hello"]),
        ]

        self.assertEqual(self.gateway.embed("hello"), [5.0, 0.0])

    def test_non_transient_api_error_is_not_retried(self) -> None:
        self.client.embeddings.create.side_effect = APIError("bad request", REQUEST, body=None)

        with self.assertRaises(EmbeddingError):
            self.gateway.embed("hello")

        self.assertEqual(self.client.embeddings.create.call_count, 1)

    def test_short_response_is_an_error(self) -> None:
        self.client.embeddings.create.side_effect = lambda model, input: embedding_response(
            input[:1]
        )

        with self.assertRaises(EmbeddingError):
            self.gateway.embed_batch(["a", "b"])


if __name__ == "__main__":
    unittest.main()
