"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from sherpa_bind.l1_entities.config import AppConfig
from sherpa_bind.l2_use_cases.diarized_transcription_use_case import DiarizedTranscriptionUseCase
from sherpa_bind.l2_use_cases.group_speakers_use_case import GroupSpeakersUseCase
from sherpa_bind.l2_use_cases.identify_speaker_use_case import IdentifySpeakerUseCase
from sherpa_bind.l2_use_cases.ports.persistence import PersistenceGateway
from sherpa_bind.l2_use_cases.streaming_transcription_use_case import StreamingTranscriptionUseCase
from sherpa_bind.l3_interface_adapters.gateways.file_persistence import FilePersistenceGateway
from sherpa_bind.l3_interface_adapters.gateways.offline_recognizer import OfflineRecognizer
from sherpa_bind.l3_interface_adapters.gateways.online_recognizer import OnlineRecognizer
from sherpa_bind.l3_interface_adapters.gateways.speaker_embedding import (
    SpeakerEmbeddingExtractor,
    SpeakerEmbeddingManager,
)
from sherpa_bind.l3_interface_adapters.gateways.vad_segmenter import VadSegmenter
from sherpa_bind.l3_interface_adapters.gateways.yaml_config_loader import YamlConfigLoader
from sherpa_bind.l3_interface_adapters.native.handle import NativeResource
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime, open_runtime
from sherpa_bind.l4_frameworks_and_drivers.config import build_app_config
from sherpa_bind.l4_frameworks_and_drivers.infra_config import InfraConfig


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing.

    Every native wrapper built here is closed, newest first, by ``close()``.
    """

    def __init__(
        self,
        config: AppConfig,
        infra: InfraConfig | None = None,
        runtime: NativeRuntime | None = None,
    ) -> None:
        self.config = config
        _infra = infra or InfraConfig()
        self.runtime = runtime or open_runtime(
            _infra.native.library,
            _infra.native.features,
            quiet=_infra.native.quiet,
            copies_config_strings=_infra.native.copies_config_strings,
        )
        self.persistence: PersistenceGateway = FilePersistenceGateway()
        self._resources: list[NativeResource] = []

    def __enter__(self) -> DependencyContainer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        while self._resources:
            self._resources.pop().close()

    def _own(self, resource):
        self._resources.append(resource)
        return resource

    def offline_recognizer(self) -> OfflineRecognizer:
        return self._own(OfflineRecognizer(self.config.offline, self.runtime))

    def online_recognizer(self) -> OnlineRecognizer:
        if self.config.online is None:
            raise ValueError("No streaming model configured: add an 'online' section to the config file.")
        return self._own(OnlineRecognizer(self.config.online, self.runtime))

    def segmenter(self) -> VadSegmenter:
        return self._own(VadSegmenter(self.config.vad, self.runtime))

    def identify_speaker(self, threshold: float | None = None) -> IdentifySpeakerUseCase:
        speaker = self.config.speaker
        extractor = self._own(SpeakerEmbeddingExtractor(speaker.extractor, self.runtime))
        gallery = self._own(SpeakerEmbeddingManager(extractor.dim, self.runtime))
        return IdentifySpeakerUseCase(
            extractor=extractor,
            gallery=gallery,
            threshold=speaker.threshold if threshold is None else threshold,
            label_prefix=speaker.label_prefix,
        )

    def diarized_transcription(self, *, speaker_id: bool = True) -> DiarizedTranscriptionUseCase:
        identify = self.identify_speaker() if speaker_id and self.config.speaker.enabled else None
        return DiarizedTranscriptionUseCase(
            segmenter=self.segmenter(),
            recognizer=self.offline_recognizer(),
            identify=identify,
        )

    def streaming_transcription(self) -> StreamingTranscriptionUseCase:
        recognizer = self.online_recognizer()
        return StreamingTranscriptionUseCase(recognizer, sample_rate=self.config.online.sample_rate)

    def group_speakers(self, threshold: float | None = None) -> GroupSpeakersUseCase:
        return GroupSpeakersUseCase(self.identify_speaker(threshold))

    @staticmethod
    def config_loader() -> YamlConfigLoader:
        return YamlConfigLoader(build=build_app_config)
