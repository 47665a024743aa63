"""Single-slot job orchestration.

At most one job (feature creation or separation) runs at a time, on a
background worker thread. Submissions while a job is running are rejected,
not queued. Progress and results reach callers as events on subscribed
sinks:

- ``on_started()``
- ``on_progress(percent)``
- ``on_finished(paths)`` exactly once per accepted job
- ``on_error(message)`` zero or more times before ``on_finished``
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union

from ..config import SeparationConfig
from ..core.errors import Busy, ModelNotLoaded, SeparationToolError
from ..input.loader import AudioLoader
from ..models.base import ModelWrapper
from ..models.extractor import FeatureExtractor
from ..models.loading import configure_threads
from ..models.separator import Separator
from ..pipeline.feature import FeaturePipeline
from ..pipeline.separation import SeparationPipeline

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class JobKind(Enum):
    FEATURE = "feature"
    SEPARATION = "separation"


class JobState(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Job:
    """One accepted unit of work.

    Attributes:
        kind: Feature creation or separation
        inputs: Query files (feature) or mixture files (separation)
        target: Output feature name (feature) or feature to separate with
        state: Lifecycle state
        results: Paths written by the job
        errors: Error messages reported by the job
    """

    kind: JobKind
    inputs: List[Path]
    target: str
    state: JobState = JobState.QUEUED
    results: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class JobEvents:
    """Event sink built from plain callables; unset events are ignored."""

    on_started: Optional[Callable[[], None]] = None
    on_progress: Optional[Callable[[int], None]] = None
    on_finished: Optional[Callable[[List[Path]], None]] = None
    on_error: Optional[Callable[[str], None]] = None


ModelFactory = Callable[[JobKind], ModelWrapper]


def default_model_factory(kind: JobKind, config: SeparationConfig) -> ModelWrapper:
    """
    Create and load the model a job kind needs, from the configured paths.

    Raises:
        ModelNotLoaded: If no path is configured or loading fails
    """
    if kind is JobKind.FEATURE:
        model: ModelWrapper = FeatureExtractor(
            clip_samples=config.clip_samples, latent_dim=config.latent_dim
        )
        path = config.extractor_model_path
    else:
        model = Separator(clip_samples=config.clip_samples, latent_dim=config.latent_dim)
        path = config.separator_model_path

    if path is None:
        raise ModelNotLoaded(f"No model file configured for {model.name}")
    model.load(path)
    return model


class JobOrchestrator:
    """
    Admits one job at a time and runs it in the background.

    Usage:
        orchestrator = JobOrchestrator(config)
        orchestrator.subscribe(JobEvents(on_finished=print, on_error=print))
        if orchestrator.submit_separation(["mix.wav"], "guitar"):
            orchestrator.wait()
    """

    def __init__(
        self,
        config: Optional[SeparationConfig] = None,
        model_factory: Optional[ModelFactory] = None,
        loader: Optional[AudioLoader] = None,
    ):
        self.config = config or SeparationConfig()
        self.paths = self.config.output_paths()
        self.loader = loader or AudioLoader(target_sr=self.config.sample_rate)
        self._model_factory = model_factory or (
            lambda kind: default_model_factory(kind, self.config)
        )

        self._sinks: List[Any] = []
        self._lock = threading.Lock()
        self._busy = False
        self._worker: Optional[threading.Thread] = None
        self.current_job: Optional[Job] = None

    # ---- Subscription ----

    def subscribe(self, sink: Any) -> None:
        """Register an event sink (any object with ``on_*`` methods, or JobEvents)."""
        self._sinks.append(sink)

    def unsubscribe(self, sink: Any) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def _emit(self, event: str, *args) -> None:
        for sink in list(self._sinks):
            handler = getattr(sink, f"on_{event}", None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception:
                logger.exception("Event sink failed handling '%s'", event)

    def _report_error(self, job: Job, message: str) -> None:
        job.errors.append(message)
        logger.error(message)
        self._emit("error", message)

    # ---- Admission ----

    def is_busy(self) -> bool:
        with self._lock:
            return self._busy

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the running job has finished.

        Returns:
            True if no job is running afterwards
        """
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return not self.is_busy()

    def submit_feature(self, query_paths: Sequence[PathLike], out_name: str) -> bool:
        """Start a feature job. Returns False if another job is running."""
        job = Job(JobKind.FEATURE, [Path(p) for p in query_paths], out_name)
        return self._start(job)

    def submit_separation(self, mixture_paths: Sequence[PathLike], feature_name: str) -> bool:
        """Start a separation job. Returns False if another job is running."""
        job = Job(JobKind.SEPARATION, [Path(p) for p in mixture_paths], feature_name)
        return self._start(job)

    def _start(self, job: Job) -> bool:
        with self._lock:
            if self._busy:
                logger.warning("%s", Busy(f"Rejected {job.kind.value} job, a job is already running"))
                return False
            self._busy = True

        self.current_job = job
        self._worker = threading.Thread(
            target=self._run,
            args=(job,),
            name=f"zeroshot-{job.kind.value}",
            daemon=True,
        )
        self._worker.start()
        return True

    # ---- Worker ----

    def _run(self, job: Job) -> None:
        try:
            job.state = JobState.RUNNING
            logger.info("Starting %s job with %d input(s)", job.kind.value, len(job.inputs))
            self._emit("started")

            try:
                configure_threads(self.config.num_threads)
                model = self._model_factory(job.kind)
            except SeparationToolError as e:
                self._report_error(job, str(e))
            except Exception as e:
                logger.exception("Unexpected failure loading the %s model", job.kind.value)
                self._report_error(job, str(ModelNotLoaded(f"Failed to load model: {e}")))
            else:
                try:
                    if job.kind is JobKind.FEATURE:
                        self._run_feature(job, model)
                    else:
                        self._run_separation(job, model)
                finally:
                    model.unload()

            job.state = JobState.COMPLETED if job.results else JobState.FAILED
            logger.info(
                "%s job %s: %d result(s), %d error(s)",
                job.kind.value.capitalize(),
                job.state.value,
                len(job.results),
                len(job.errors),
            )
            self._emit("finished", list(job.results))
        finally:
            with self._lock:
                self._busy = False

    def _run_feature(self, job: Job, model: FeatureExtractor) -> None:
        pipeline = FeaturePipeline(
            model,
            loader=self.loader,
            paths=self.paths,
            config=self.config,
            progress=lambda percent: self._emit("progress", percent),
        )
        try:
            job.results.append(pipeline.create_feature(job.inputs, job.target))
        except SeparationToolError as e:
            self._report_error(job, str(e))
        except Exception as e:
            logger.exception("Unexpected failure creating feature %s", job.target)
            self._report_error(job, f"Error: {e}")

    def _run_separation(self, job: Job, model: Separator) -> None:
        total = len(job.inputs)
        for index, mixture in enumerate(job.inputs):
            pipeline = SeparationPipeline(
                model,
                loader=self.loader,
                paths=self.paths,
                config=self.config,
                progress=lambda percent, i=index: self._emit(
                    "progress", (i * 100 + percent) // total
                ),
            )
            try:
                job.results.append(pipeline.separate(mixture, job.target))
            except SeparationToolError as e:
                self._report_error(job, _describe(e, mixture))
            except Exception as e:
                logger.exception("Unexpected failure separating %s", mixture)
                self._report_error(job, f"Error: {e} [{mixture}]")


def _describe(error: SeparationToolError, path: Path) -> str:
    """Error message that always names the file being processed."""
    if error.path is None:
        error.path = str(path)
    message = str(error)
    if error.path != str(path):
        message += f" [{path}]"
    return message
