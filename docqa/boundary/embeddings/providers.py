"""
Embedding provider adapter.

Maps each embedding space to a LangChain Embeddings implementation:
the provider space uses Google Generative AI embeddings, the local space a
sentence-transformers model through HuggingFaceEmbeddings. Models are built
lazily on first use.

Dependencies: langchain_core, langchain_google_genai, langchain_community, python-dotenv
System role: External `embed(text, space) -> vector` collaborator
"""

import logging
from typing import Callable

from dotenv import load_dotenv
from langchain_core.embeddings import Embeddings

from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.configs.embeddings import EmbeddingSettings

load_dotenv()
logger = logging.getLogger(__name__)

EmbeddingsFactory = Callable[[], Embeddings]


class EmbeddingProvider:
    """Lazily-built Embeddings instance per embedding space."""

    def __init__(self, factories: dict[EmbeddingSpace, EmbeddingsFactory]) -> None:
        """
        Initialize provider with one factory per space.

        Args:
            factories: Callables returning an Embeddings instance
        """
        self._factories = dict(factories)
        self._instances: dict[EmbeddingSpace, Embeddings] = {}

    @classmethod
    def from_instances(cls, instances: dict[EmbeddingSpace, Embeddings]) -> "EmbeddingProvider":
        """Build a provider around ready Embeddings objects."""
        return cls({space: (lambda e=embeddings: e) for space, embeddings in instances.items()})

    def for_space(self, space: EmbeddingSpace | str) -> Embeddings:
        """
        Get the Embeddings implementation for a space.

        Args:
            space: Embedding space

        Returns:
            Embeddings: LangChain embeddings model

        Raises:
            ValueError: When no model is configured for the space
        """
        space = EmbeddingSpace(space)
        if space not in self._instances:
            factory = self._factories.get(space)
            if factory is None:
                raise ValueError(f"No embedding model configured for space '{space.value}'")
            logger.info(f"{__name__}:for_space - Initializing embeddings for {space.value}")
            self._instances[space] = factory()
        return self._instances[space]

    async def embed_query(self, text: str, space: EmbeddingSpace | str) -> list[float]:
        """Embed a single text in the given space."""
        return await self.for_space(space).aembed_query(text)

    async def embed_documents(
        self,
        texts: list[str],
        space: EmbeddingSpace | str,
    ) -> list[list[float]]:
        """Embed a batch of texts in the given space."""
        return await self.for_space(space).aembed_documents(texts)


def build_embedding_provider(settings: EmbeddingSettings) -> EmbeddingProvider:
    """
    Create the production provider from settings.

    Args:
        settings: Embedding settings

    Returns:
        EmbeddingProvider: Provider with Google (provider) and HuggingFace (local) factories
    """

    def provider_factory() -> Embeddings:
        from langchain_google_genai import GoogleGenerativeAIEmbeddings

        return GoogleGenerativeAIEmbeddings(model=settings.provider_model)

    def local_factory() -> Embeddings:
        # Requires the "local" extra (sentence-transformers)
        from langchain_community.embeddings import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=settings.local_model)

    return EmbeddingProvider(
        {
            EmbeddingSpace.PROVIDER: provider_factory,
            EmbeddingSpace.LOCAL: local_factory,
        }
    )
