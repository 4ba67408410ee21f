"""Pure threshold ladder logic for one-shot usage notifications."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..constants import NOTIFICATION_THRESHOLDS


def step_thresholds(
   percentage: int, last_notified: int, ladder: Sequence[int] = NOTIFICATION_THRESHOLDS
) -> Tuple[List[int], int]:
   """
   Advance the per-account notification state.

   Returns (crossed, new_last). Every band reached since the last
   notification is reported once, in ascending order. When usage has fallen
   below the last notified band the state drops to the highest band still
   reached, without reporting anything.
   """
   crossed: List[int] = []
   current = last_notified

   for threshold in sorted(ladder):
      if percentage >= threshold and current < threshold:
         crossed.append(threshold)
         current = threshold

   if percentage < last_notified:
      current = max((t for t in ladder if t <= percentage), default=0)

   return crossed, current
