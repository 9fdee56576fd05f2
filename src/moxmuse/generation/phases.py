"""Generation phases and progress events."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class GenerationPhase:
    name: str
    description: str
    progress: int  # percent


GENERATION_PHASES: tuple[GenerationPhase, ...] = (
    GenerationPhase(
        "Analyzing Strategy",
        "Analyzing commander abilities and strategy preferences...",
        10,
    ),
    GenerationPhase(
        "Generating Cards",
        "Generating 99-card recommendations optimized for Commander...",
        30,
    ),
    GenerationPhase(
        "Assembling Deck",
        "Assembling 100-card Commander deck structure...",
        60,
    ),
    GenerationPhase(
        "Calculating Statistics",
        "Calculating mana curve, synergies, and multiplayer balance...",
        80,
    ),
    GenerationPhase(
        "Finalizing",
        "Finalizing Commander deck analysis and recommendations...",
        100,
    ),
)

ANALYZING = 0
GENERATING = 1
ASSEMBLING = 2
CALCULATING = 3
FINALIZING = 4


@dataclass(frozen=True)
class GenerationProgress:
    """
    One progress event.

    retry_count lets subscribers tell a retry (progress back at phase 0 with
    a higher retry_count) from a regression, which never happens.
    """
    phase_index: int
    name: str
    description: str
    progress: int
    retry_count: int = 0

    @classmethod
    def for_phase(cls, phase_index: int, retry_count: int = 0) -> "GenerationProgress":
        phase = GENERATION_PHASES[phase_index]
        return cls(phase_index, phase.name, phase.description, phase.progress, retry_count)

    def to_dict(self) -> dict:
        return asdict(self)
