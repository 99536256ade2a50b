"""Error taxonomy for dependency resolution."""


class ResolverError(Exception):
    """Base error raised when a dependency cannot be resolved."""


class UnsupportedProtocolError(ResolverError):
    """The specifier names a resolution protocol that is not implemented."""

    def __init__(self, specifier: str, protocol: str = ""):
        self.specifier = specifier
        self.protocol = protocol
        detail = f" (protocol '{protocol}')" if protocol else ""
        super().__init__(f"Unsupported specifier '{specifier}'{detail}")


class PackageNotFoundError(ResolverError):
    """The registry has no package or no version matching the specifier."""

    def __init__(self, name_at_spec: str):
        self.name_at_spec = name_at_spec
        super().__init__(f"No matching version found for {name_at_spec}")


class RegistryError(ResolverError):
    """The registry answered with something other than a usable packument."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)
