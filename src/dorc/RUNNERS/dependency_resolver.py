"""
Dependency resolution for services to determine startup and shutdown order.
"""
from typing import List, Mapping, Sequence
from ..exceptions import DependencyError
from ..MODELS.service_id import ServiceId


class DependencyResolver:
    """
    Orders services so that every service comes after the services it links to.
    """
    def resolve_order(self, links: Mapping[ServiceId, Sequence[ServiceId]]) -> List[ServiceId]:
        """
        Sorts ids by repeated passes over the remaining ids in their original
        order. Each pass appends every id whose link targets are all already
        placed, so ids that become ready together keep their declaration order.

        :param links: Link targets by id, in declaration order.
        :return: Ids with dependencies before dependents.
        :raises DependencyError: If a pass places nothing, naming every id
            still unresolved (a cycle, or a link to an unknown id).
        """
        remaining = list(links)
        ordered: List[ServiceId] = []
        placed = set()

        while remaining:
            deferred = []
            for service_id in remaining:
                if all(target in placed for target in links[service_id]):
                    ordered.append(service_id)
                    placed.add(service_id)
                else:
                    deferred.append(service_id)
            if len(deferred) == len(remaining):
                raise DependencyError([str(i) for i in deferred])
            remaining = deferred

        return ordered

    def resolve(self, links: Mapping[ServiceId, Sequence[ServiceId]], reverse: bool = False) -> List[ServiceId]:
        """
        Forward order for building and starting, reverse for stopping and cleaning.
        """
        ordered = self.resolve_order(links)
        if reverse:
            ordered.reverse()
        return ordered
