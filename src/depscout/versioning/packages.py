"""Package record construction."""

from typing import Callable, Optional, Protocol

from ..constants import PackageSourceType
from .models import PackageMeta, PackageRecord, StatusMeta

GenerateVersion = Callable[[PackageRecord, str], str]


class PackageRecordBuilder(Protocol):
    """Capability turning resolver metadata into display-ready records."""

    def create_package(
        self,
        name: str,
        version: str,
        meta: PackageMeta,
        custom_generate: Optional[GenerateVersion] = None,
    ) -> PackageRecord:
        ...

    def create_not_supported(self, name: str, version: str, source: str) -> PackageRecord:
        ...

    def create_not_found(self, name: str, version: str, source: str) -> PackageRecord:
        ...


class DefaultPackageBuilder:
    """Builds plain :class:`PackageRecord` instances."""

    def create_package(
        self,
        name: str,
        version: str,
        meta: PackageMeta,
        custom_generate: Optional[GenerateVersion] = None,
    ) -> PackageRecord:
        return PackageRecord(name=name, version=version, meta=meta, custom_generate=custom_generate)

    def create_not_supported(self, name: str, version: str, source: str) -> PackageRecord:
        meta = StatusMeta(type=PackageSourceType.NOT_SUPPORTED, message=f"{source}: package not supported")
        return PackageRecord(name=name, version=version, meta=meta)

    def create_not_found(self, name: str, version: str, source: str) -> PackageRecord:
        meta = StatusMeta(type=PackageSourceType.NOT_FOUND, message=f"{source}: package not found")
        return PackageRecord(name=name, version=version, meta=meta)
