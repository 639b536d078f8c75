import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from docchat.core.config import (
    Settings,
    get_pinecone_host,
    get_settings,
    load_env_file,
    reset_settings,
)
from docchat.core.errors import ConfigurationError

BASE_ENV = {
    "DOCCHAT_ENV_FILE": "/nonexistent/docchat.env",
    "OPENAI_API_KEY": "sk-test",
    "OPENROUTER_API_KEY": "or-test",
    "JWT_SECRET": "secret",
    "PINECONE_API_KEY": "pc-test",
    "PINECONE_INDEX": "doc-chat",
}


class TestSettings(unittest.TestCase):
    def setUp(self) -> None:
        reset_settings()

    def tearDown(self) -> None:
        reset_settings()

    def test_defaults(self) -> None:
        with patch.dict(os.environ, BASE_ENV, clear=True):
            settings = get_settings()

        self.assertEqual(settings.chunk_size, 1000)
        self.assertEqual(settings.chunk_overlap, 200)
        self.assertEqual(settings.retrieval_top_k, 4)
        self.assertEqual(settings.max_upload_bytes, 10 * 1024 * 1024)
        self.assertEqual(settings.vector_backend, "pinecone")
        self.assertEqual(settings.pinecone_namespace, "documents")

    def test_settings_are_cached_until_reset(self) -> None:
        with patch.dict(os.environ, BASE_ENV, clear=True):
            first = get_settings()
            os.environ["CHUNK_SIZE"] = "500"
            self.assertIs(get_settings(), first)
            reset_settings()
            self.assertEqual(get_settings().chunk_size, 500)

    def test_missing_required_key(self) -> None:
        env = {k: v for k, v in BASE_ENV.items() if k != "JWT_SECRET"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError) as ctx:
                get_settings()

        self.assertIn("JWT_SECRET", ctx.exception.message)

    def test_overlap_must_be_smaller_than_size(self) -> None:
        env = {**BASE_ENV, "CHUNK_SIZE": "200", "CHUNK_OVERLAP": "200"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError):
                get_settings()

    def test_non_numeric_value(self) -> None:
        env = {**BASE_ENV, "RETRIEVAL_TOP_K": "four"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError):
                get_settings()

    def test_memory_backend_needs_no_pinecone(self) -> None:
        env = {
            k: v for k, v in BASE_ENV.items() if not k.startswith("PINECONE")
        }
        env["VECTOR_BACKEND"] = "Memory"
        with patch.dict(os.environ, env, clear=True):
            settings = get_settings()

        self.assertEqual(settings.vector_backend, "memory")

    def test_pinecone_backend_needs_index(self) -> None:
        with self.assertRaises(ConfigurationError):
            Settings(openai_api_key="k", openrouter_api_key="k", jwt_secret="s")

    def test_unknown_backend(self) -> None:
        with self.assertRaises(ConfigurationError):
            Settings(
                openai_api_key="k", openrouter_api_key="k", jwt_secret="s", vector_backend="faiss"
            )

    def test_per_index_host_wins(self) -> None:
        settings = Settings(
            openai_api_key="k",
            openrouter_api_key="k",
            jwt_secret="s",
            pinecone_api_key="pc",
            pinecone_index="doc-chat",
            pinecone_host="default.pinecone.io",
        )
        with patch.dict(os.environ, {"PINECONE_HOST_DOC_CHAT": "doc-chat.pinecone.io"}, clear=True):
            self.assertEqual(get_pinecone_host(settings), "doc-chat.pinecone.io")
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_pinecone_host(settings), "default.pinecone.io")


class TestLoadEnvFile(unittest.TestCase):
    def test_loads_values_without_overriding(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / "docchat.env"
            env_file.write_text(
                "# comment\nJWT_SECRET='from-file'\nLOG_LEVEL=\"debug\"\nnot a pair\n",
                encoding="utf-8",
            )
            with patch.dict(os.environ, {"JWT_SECRET": "from-env"}, clear=True):
                load_env_file(str(env_file))

                self.assertEqual(os.environ["JWT_SECRET"], "from-env")
                self.assertEqual(os.environ["LOG_LEVEL"], "debug")

    def test_override(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / "docchat.env"
            env_file.write_text("JWT_SECRET=from-file\n", encoding="utf-8")
            with patch.dict(os.environ, {"JWT_SECRET": "from-env"}, clear=True):
                load_env_file(str(env_file), override=True)

                self.assertEqual(os.environ["JWT_SECRET"], "from-file")


if __name__ == "__main__":
    unittest.main()
