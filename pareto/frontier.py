"""
Frontier manager for Pareto Select.
Maintains the live non-dominated set and the best-ever archive as immutable
Frontier values: every operation returns a new Frontier.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .dominance import (
    Epsilon,
    crowding_distances,
    dominates,
    epsilon_dominates,
    rank_and_crowd,
)
from .errors import InvalidConfigError, ValidationError
from .hypervolume import HypervolumeCalculator
from .interfaces import (
    DEFAULT_ARCHIVE_MAX_SIZE,
    DEFAULT_MAX_FRONTIER_SIZE,
    DEFAULT_REFERENCE_MARGIN,
    Candidate,
    Frontier,
    is_infinite,
    objective_names,
    require_annotations,
)

logger = logging.getLogger(__name__)


class FrontierManager:
    """
    Applies insertions, removals, trimming and archiving to a Frontier.

    Configuration is validated at construction; the manager itself holds no
    per-run state.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_FRONTIER_SIZE,
        archive_max_size: int = DEFAULT_ARCHIVE_MAX_SIZE,
        reference_point: Optional[Mapping[str, float]] = None,
        reference_margin: float = DEFAULT_REFERENCE_MARGIN,
        epsilon: Optional[Epsilon] = None,
    ):
        errors = []
        if max_size < 1:
            errors.append(f"max_size must be >= 1, got {max_size}")
        if archive_max_size < 1:
            errors.append(f"archive_max_size must be >= 1, got {archive_max_size}")
        if reference_margin < 0:
            errors.append(f"reference_margin must be >= 0, got {reference_margin}")
        if errors:
            raise InvalidConfigError(errors)

        self.max_size = max_size
        self.archive_max_size = archive_max_size
        self.reference_point = dict(reference_point) if reference_point else None
        self.epsilon = epsilon
        self.calculator = HypervolumeCalculator(margin=reference_margin)

    def new(self, generation: int = 0) -> Frontier:
        """Empty frontier for a new run."""
        return Frontier(
            generation=generation, reference_point=self.reference_point, hypervolume=0.0
        )

    # Queries

    @staticmethod
    def get_pareto_optimal(frontier: Frontier) -> List[Candidate]:
        return list(frontier.solutions.values())

    @staticmethod
    def get_front(frontier: Frontier, rank: int) -> List[str]:
        return list(frontier.fronts.get(rank, []))

    # Live set

    def _dominated_by(self, a: Candidate, b: Candidate, names: Sequence[str]) -> bool:
        """True if ``a`` dominates ``b`` under the configured relation."""
        if self.epsilon is not None:
            return epsilon_dominates(a, b, self.epsilon, names)
        return dominates(a, b, names)

    def _check_objectives(self, frontier: Frontier, candidate: Candidate) -> List[str]:
        require_annotations([candidate], "normalized_objectives")
        members = list(frontier.solutions.values())[:1]
        names = objective_names(members + [candidate])
        if members and set(candidate.normalized_objectives) != set(names):  # type: ignore[arg-type]
            raise ValidationError(
                f"Candidate {candidate.id} objectives do not match the frontier",
                details={
                    "candidate_id": candidate.id,
                    "expected": names,
                    "actual": sorted(candidate.normalized_objectives),  # type: ignore[arg-type]
                },
            )
        return names

    @staticmethod
    def _with_solutions(
        frontier: Frontier, solutions: Dict[str, Candidate], **changes
    ) -> Frontier:
        fronts = {
            rank: [i for i in ids if i not in solutions]
            for rank, ids in frontier.fronts.items()
            if rank != 1
        }
        fronts = {rank: ids for rank, ids in fronts.items() if ids}
        fronts[1] = list(solutions)
        if not solutions:
            fronts.pop(1)
        return replace(
            frontier,
            solutions=solutions,
            fronts=fronts,
            hypervolume=None if solutions else 0.0,
            **changes,
        )

    def add_solution(self, frontier: Frontier, candidate: Candidate) -> Frontier:
        """Insert ``candidate`` unless an existing member dominates it.

        Members the candidate dominates are removed; the result is trimmed if
        it exceeds ``max_size``. Re-adding a known id is a no-op.
        """
        names = self._check_objectives(frontier, candidate)
        if candidate.id in frontier.solutions:
            return frontier

        for member in frontier.solutions.values():
            if self._dominated_by(member, candidate, names):
                logger.debug(f"Rejected {candidate.id}: dominated by {member.id}")
                return frontier

        survivors = {
            sid: member
            for sid, member in frontier.solutions.items()
            if not self._dominated_by(candidate, member, names)
        }
        removed = len(frontier.solutions) - len(survivors)
        if removed:
            logger.debug(f"{candidate.id} displaced {removed} frontier members")
        survivors[candidate.id] = candidate
        updated = self._with_solutions(frontier, survivors)
        if len(updated.solutions) > self.max_size:
            updated = self.trim(updated)
        return updated

    def add_solutions(
        self,
        frontier: Frontier,
        candidates: Iterable[Candidate],
        generation: Optional[int] = None,
    ) -> Frontier:
        """Add each candidate in turn and stamp the frontier's generation.

        Rank 1 of ``fronts`` is left equal to ``solutions`` even when every
        candidate was rejected after an ``update_fronts`` call.
        """
        for candidate in candidates:
            frontier = self.add_solution(frontier, candidate)
        if frontier.fronts.get(1, []) != list(frontier.solutions):
            frontier = self._with_solutions(frontier, dict(frontier.solutions))
        if generation is not None:
            frontier = replace(frontier, generation=generation)
        return frontier

    def remove_solution(self, frontier: Frontier, solution_id: str) -> Frontier:
        if solution_id not in frontier.solutions:
            return frontier
        solutions = {k: v for k, v in frontier.solutions.items() if k != solution_id}
        return self._with_solutions(frontier, solutions)

    def trim(self, frontier: Frontier, max_size: Optional[int] = None) -> Frontier:
        """Shrink the live set to ``max_size`` by crowding distance.

        Crowding is recomputed after every removal. Interior members go first,
        lowest distance first; boundary members are removed only once no
        interior member is left, smallest hypervolume contribution first.
        """
        limit = self.max_size if max_size is None else max_size
        if len(frontier.solutions) <= limit:
            return frontier
        if limit < 1:
            raise InvalidConfigError([f"max_size must be >= 1, got {limit}"])

        solutions = dict(frontier.solutions)
        names = objective_names(list(solutions.values()))
        while len(solutions) > limit:
            members = list(solutions.values())
            distances = crowding_distances(members, names)
            interior = [m for m in members if not is_infinite(distances[m.id])]
            if interior:
                victim = min(interior, key=lambda m: (distances[m.id], m.id))
            else:
                reference = self.calculator.auto_reference_point(members)
                contribution = self.calculator.contributions(members, reference)
                victim = min(members, key=lambda m: (contribution[m.id], m.id))
            logger.debug(f"Trimmed {victim.id} from frontier")
            del solutions[victim.id]
        return self._with_solutions(frontier, solutions)

    # Population ranking

    def update_fronts(
        self, frontier: Frontier, population: Sequence[Candidate]
    ) -> Tuple[Frontier, List[Candidate]]:
        """Rank an arbitrary candidate set and replace ``fronts`` with the result.

        Returns:
            (frontier with new fronts, population annotated with rank and
            crowding distance in input order)
        """
        fronts = rank_and_crowd(population, self.epsilon)
        annotated = {c.id: c for front in fronts for c in front}
        new_fronts = {rank: [c.id for c in front] for rank, front in enumerate(fronts, 1)}
        return (
            replace(frontier, fronts=new_fronts),
            [annotated[c.id] for c in population],
        )

    # Hypervolume

    def compute_hypervolume(
        self, frontier: Frontier, population: Optional[Sequence[Candidate]] = None
    ) -> Frontier:
        """Cache the hypervolume of ``solutions`` on the frontier.

        A configured reference point is validated and used as is; otherwise
        one is derived from ``population`` (or the solutions themselves).
        """
        solutions = list(frontier.solutions.values())
        if not solutions:
            return replace(frontier, hypervolume=0.0)
        if self.reference_point is not None:
            reference = dict(self.reference_point)
        else:
            basis = list(population) if population else solutions
            reference = self.calculator.auto_reference_point(basis + solutions)
        value = self.calculator.calculate(solutions, reference)
        return replace(frontier, hypervolume=value, reference_point=reference)

    # Archive

    def archive_solution(self, frontier: Frontier, candidate: Candidate) -> Frontier:
        """Append ``candidate`` to the archive, evicting the least valuable record.

        Past the cap, the archive is re-ranked and the member with the worst
        rank and then the lowest crowding distance is dropped; ties evict the
        oldest entry.
        """
        require_annotations([candidate], "normalized_objectives")
        if any(a.id == candidate.id for a in frontier.archive):
            return frontier
        archive = list(frontier.archive) + [candidate]
        while len(archive) > self.archive_max_size:
            ranked = {c.id: c for front in rank_and_crowd(archive) for c in front}
            order = {c.id: i for i, c in enumerate(archive)}

            def eviction_key(c: Candidate) -> Tuple[int, int, float, int]:
                r = ranked[c.id]
                if is_infinite(r.crowding_distance):
                    return (-r.pareto_rank, 1, 0.0, order[c.id])  # type: ignore[operator]
                distance = float(r.crowding_distance)  # type: ignore[arg-type]
                return (-r.pareto_rank, 0, distance, order[c.id])  # type: ignore[operator]

            victim = min(archive, key=eviction_key)
            archive.remove(victim)
            logger.debug(f"Evicted {victim.id} from archive")
        return replace(frontier, archive=tuple(archive))

    def archive_solutions(
        self, frontier: Frontier, candidates: Iterable[Candidate]
    ) -> Frontier:
        for candidate in candidates:
            frontier = self.archive_solution(frontier, candidate)
        return frontier
