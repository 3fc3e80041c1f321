"""Dynamic endpoint extractor registration system."""
import logging
from typing import Dict, Type, List, Set

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """Registry for discovering and instantiating endpoint extractors."""

    _extractors: Dict[str, Type] = {}
    _order: List[str] = []  # Preserve registration order
    _follows: Dict[str, bool] = {}  # Whether the crawler recurses into an extractor's hits

    @classmethod
    def register(cls, name: str, follow: bool = False):
        """Decorator to register an extractor class.

        Args:
            name: Unique identifier for the extractor (e.g., "links", "forms")
            follow: True when the crawler should recurse into what it finds

        Example:
            @ExtractorRegistry.register("links", follow=True)
            class LinkExtractor:
                async def extract(self, page: PageContext) -> List[Endpoint]:
                    ...
        """
        def decorator(extractor_class: Type):
            if name in cls._extractors:
                logger.warning(f"Extractor '{name}' already registered, overwriting")
            else:
                cls._order.append(name)

            cls._extractors[name] = extractor_class
            cls._follows[name] = follow
            logger.debug(f"Registered extractor: {name} -> {extractor_class.__name__}")
            return extractor_class
        return decorator

    @classmethod
    def get_all_names(cls) -> List[str]:
        """Get names of all registered extractors in registration order."""
        return cls._order.copy()

    @classmethod
    def follows(cls, name: str) -> bool:
        return cls._follows.get(name, False)

    @classmethod
    def instantiate_all(cls, exclude: Set[str] = None) -> Dict[str, object]:
        """Instantiate registered extractors.

        Args:
            exclude: Set of extractor names to skip

        Returns:
            Dictionary mapping extractor name to extractor instance

        Raises:
            ValueError: if ``exclude`` names an unknown extractor
        """
        exclude = set(exclude or ())
        unknown = exclude - set(cls._order)
        if unknown:
            raise ValueError(f"Unknown extractors: {', '.join(sorted(unknown))}")

        instances = {}
        for name in cls._order:
            if name in exclude:
                logger.info(f"Skipping excluded extractor: {name}")
                continue
            instances[name] = cls._extractors[name]()
            logger.debug(f"Instantiated extractor: {name}")
        return instances
