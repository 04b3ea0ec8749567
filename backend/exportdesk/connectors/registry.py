"""
Mirror Registry - Central registration and resolution of authority mirrors

Maps mirror type strings (the AUTHORITY_MIRROR_TYPE setting) to adapter
classes, enabling runtime resolution without tight coupling.
"""

from typing import Dict, Type

from .ports import AuthorityMirrorPort


class MirrorRegistry:
    """
    Registry for authority mirror implementations.

    Usage:
        # Register an adapter (typically at import of the adapter module)
        MirrorRegistry.register("MEMORY", InMemoryAuthorityMirror)

        # Resolve at startup
        mirror = MirrorRegistry.get(settings.AUTHORITY_MIRROR_TYPE)

    Registration should happen only at import/startup in the main thread.
    """

    _mirrors: Dict[str, Type[AuthorityMirrorPort]] = {}

    @classmethod
    def register(cls, mirror_type: str, implementation: Type[AuthorityMirrorPort]) -> None:
        """
        Register a mirror implementation.

        Args:
            mirror_type: Unique identifier (e.g., 'LOG', 'MEMORY')
            implementation: Class implementing AuthorityMirrorPort

        Raises:
            ValueError: If mirror_type is empty or implementation doesn't inherit from AuthorityMirrorPort
            RuntimeError: If mirror_type is already registered
        """
        if not mirror_type or not mirror_type.strip():
            raise ValueError("mirror_type cannot be empty")

        if not issubclass(implementation, AuthorityMirrorPort):
            raise ValueError(
                f"Implementation must inherit from AuthorityMirrorPort, "
                f"got {implementation.__name__}"
            )

        if mirror_type in cls._mirrors:
            raise RuntimeError(
                f"Mirror type '{mirror_type}' is already registered. "
                f"Use unregister() first if you need to replace it."
            )

        cls._mirrors[mirror_type] = implementation

    @classmethod
    def get(cls, mirror_type: str) -> AuthorityMirrorPort:
        """
        Get a new mirror instance by type.

        Raises:
            ValueError: If mirror_type is not registered
        """
        if mirror_type not in cls._mirrors:
            available = ', '.join(sorted(cls._mirrors)) if cls._mirrors else 'none'
            raise ValueError(
                f"Unknown authority mirror type: '{mirror_type}'. "
                f"Available mirrors: {available}"
            )
        return cls._mirrors[mirror_type]()

    @classmethod
    def list_available(cls) -> list[str]:
        return sorted(cls._mirrors.keys())

    @classmethod
    def is_registered(cls, mirror_type: str) -> bool:
        return mirror_type in cls._mirrors

    @classmethod
    def unregister(cls, mirror_type: str) -> None:
        """
        Remove a mirror from the registry. Primarily used in tests.

        Raises:
            ValueError: If mirror_type is not registered
        """
        if mirror_type not in cls._mirrors:
            raise ValueError(f"Mirror type '{mirror_type}' is not registered")
        del cls._mirrors[mirror_type]
