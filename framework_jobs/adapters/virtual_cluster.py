"""Settings-backed virtual-cluster authorization."""

from __future__ import annotations

from typing import Final, Mapping, Sequence

from .interfaces import VirtualClusterAuthorizerPort


class StaticVirtualClusterAuthorizer(VirtualClusterAuthorizerPort):
    """Authorize users against a static mapping of users to virtual clusters.

    Every user may use the `default` virtual cluster.
    """

    _DEFAULT_VIRTUAL_CLUSTER: Final[str] = "default"

    def __init__(self, user_virtual_clusters: Mapping[str, Sequence[str]] | None = None):
        self._user_virtual_clusters = {
            user_name: frozenset(virtual_clusters)
            for user_name, virtual_clusters in (user_virtual_clusters or {}).items()
        }

    async def adapter_check_user_virtual_cluster(self, user_name: str, virtual_cluster: str) -> bool:
        if virtual_cluster == self._DEFAULT_VIRTUAL_CLUSTER:
            return True
        return virtual_cluster in self._user_virtual_clusters.get(user_name, frozenset())
