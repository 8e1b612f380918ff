"""Registry: register analysis types and other named plugins."""

from typing import Any, Dict, List, Type


class Registry:
    """Simple registry for plugins."""
    
    def __init__(self, kind: str = "object", missing_error: Type[Exception] = ValueError):
        self.kind = kind
        self.missing_error = missing_error
        self._registry: Dict[str, Any] = {}
    
    def register(self, name: str, obj: Any) -> None:
        """Register an object."""
        if name in self._registry:
            raise ValueError(f"Already registered {self.kind}: {name}")
        self._registry[name] = obj
    
    def get(self, name: str) -> Any:
        """Get registered object."""
        if name not in self._registry:
            known = ", ".join(self.names()) or "none"
            raise self.missing_error(f"Unknown {self.kind}: {name!r} (known: {known})")
        return self._registry[name]
    
    def names(self) -> List[str]:
        """Registered names in registration order."""
        return list(self._registry)
    
    def list(self) -> Dict[str, Any]:
        """List all registered objects."""
        return dict(self._registry)
    
    def __contains__(self, name: str) -> bool:
        """Check if registered."""
        return name in self._registry
