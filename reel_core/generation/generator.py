import random
from math import comb
from typing import Iterable, List, Optional, Set

from loguru import logger

from reel_core.catalog.models import ClipType, VideoClip
from reel_core.config_manager import GeneratorConfig
from reel_core.errors import InsufficientInput
from reel_core.generation.models import DedupKey, Sequence, dedup_key


def max_combinations(n_hooks: int, n_selling_points: int, n_ctas: int) -> int:
    """Distinct {hook, subset of selling points, CTA} triples."""
    return n_hooks * n_ctas * 2**n_selling_points


def reachable_combinations(n_hooks: int, n_selling_points: int, n_ctas: int, max_selling_points: int = 3) -> int:
    """Keys the sampler can actually hit: subsets of size 1..max_selling_points, or the empty one."""
    if n_selling_points == 0:
        return n_hooks * n_ctas
    upper = min(max_selling_points, n_selling_points)
    return n_hooks * n_ctas * sum(comb(n_selling_points, k) for k in range(1, upper + 1))


class SequenceGenerator:
    """
    Samples structurally distinct sequences from a catalog snapshot.

    Each draw picks a hook, a CTA and 1..max_selling_points selling points
    (prefix of a shuffle). Draws whose dedup key was already emitted are
    rejected. The loop ends when the target count is reached, when every
    reachable key has been emitted, or after `max_failed_draws` rejections
    in a row, whichever comes first.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, rng: Optional[random.Random] = None):
        self.cfg = config or GeneratorConfig()
        self.rng = rng if rng is not None else random.Random(self.cfg.seed)

    def generate(self, clips: Iterable[VideoClip]) -> List[Sequence]:
        clips = list(clips)
        hooks = [c for c in clips if c.type == ClipType.HOOK]
        selling_points = [c for c in clips if c.type == ClipType.SELLING_POINT]
        ctas = [c for c in clips if c.type == ClipType.CTA]

        if not hooks:
            raise InsufficientInput("At least one hook clip is required to build sequences")
        if not ctas:
            raise InsufficientInput("At least one CTA clip is required to build sequences")

        total = max_combinations(len(hooks), len(selling_points), len(ctas))
        target = min(self.cfg.target_count, total)
        reachable = reachable_combinations(
            len(hooks), len(selling_points), len(ctas), self.cfg.max_selling_points
        )

        logger.info(
            f"Generating up to {target} sequences from {len(hooks)} hooks, "
            f"{len(selling_points)} selling points, {len(ctas)} CTAs ({total} combinations)"
        )

        sequences: List[Sequence] = []
        seen: Set[DedupKey] = set()
        failed_draws = 0

        while len(sequences) < target and len(seen) < reachable:
            hook = self.rng.choice(hooks)
            cta = self.rng.choice(ctas)
            chosen = self._draw_selling_points(selling_points)

            key = dedup_key(hook, chosen, cta)
            if key in seen:
                failed_draws += 1
                if failed_draws >= self.cfg.max_failed_draws:
                    logger.warning(
                        f"Stopping after {failed_draws} duplicate draws in a row; "
                        f"returning {len(sequences)} of {target} sequences"
                    )
                    break
                continue

            failed_draws = 0
            seen.add(key)
            seq_clips = [hook, *chosen, cta]
            sequences.append(
                Sequence(
                    id=f"sequence-{len(sequences) + 1}",
                    clips=seq_clips,
                    duration=sum(c.duration for c in seq_clips),
                )
            )

        logger.success(f"Generated {len(sequences)} sequences")
        return sequences

    def _draw_selling_points(self, selling_points: List[VideoClip]) -> List[VideoClip]:
        if not selling_points:
            return []
        count = self.rng.randint(1, min(self.cfg.max_selling_points, len(selling_points)))
        shuffled = list(selling_points)
        self.rng.shuffle(shuffled)
        return shuffled[:count]
