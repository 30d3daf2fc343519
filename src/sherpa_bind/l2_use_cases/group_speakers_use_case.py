"""Use case: group whole recordings by speaker."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from sherpa_bind.l2_use_cases.identify_speaker_use_case import IdentifySpeakerUseCase


class GroupSpeakersUseCase:
    def __init__(self, identify: IdentifySpeakerUseCase) -> None:
        self._identify = identify

    def execute(self, recordings: Iterable[tuple[str, np.ndarray]], sample_rate: int) -> dict[str, list[str]]:
        """Map speaker label -> recording names, labels in order of first appearance."""
        groups: dict[str, list[str]] = {}
        for name, samples in recordings:
            label = self._identify.execute(sample_rate, samples)
            groups.setdefault(label, []).append(name)
        return groups
