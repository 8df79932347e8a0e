"""
Model loading with backend fallback.

Loading happens in two independent steps:

1. Backend selection: walk an ordered list of candidates (e.g. cuda, then cpu)
   and keep the first one that initializes. Failures are collected so the
   final diagnostic names every backend that was skipped.
2. Artifact loading: load the detection model weights onto the selected
   device. This can fail on its own (missing file, download error) and is
   reported with a separate message.

Load failures are never raised. They are kept in ``last_error`` and the
service keeps answering requests with a "not ready" response until an
operator triggers a reload.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .backend import InferenceBackend
from .ultralytics_backend import UltralyticsBackend, UltralyticsConfig


NO_BACKEND = "none"
LOAD_IN_PROGRESS = "Model load already in progress"


class ModelState(str, Enum):
    """Model lifecycle states."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class BackendCandidate:
    """A named backend initializer; ``init`` returns the device string or raises."""
    name: str
    init: Callable[[], str]


@dataclass(frozen=True)
class LoadResult:
    success: bool
    backend: str
    error: Optional[str] = None


def _init_cuda() -> str:
    import torch  # type: ignore

    if not torch.cuda.is_available():
        raise RuntimeError("CUDA is not available")
    return "cuda"


def _init_mps() -> str:
    import torch  # type: ignore

    mps = getattr(torch.backends, "mps", None)
    if mps is None or not mps.is_available():
        raise RuntimeError("MPS is not available")
    return "mps"


def _init_cpu() -> str:
    import torch  # type: ignore  # noqa: F401

    return "cpu"


BACKEND_INITIALIZERS: Dict[str, Callable[[], str]] = {
    "cuda": _init_cuda,
    "mps": _init_mps,
    "cpu": _init_cpu,
}


def candidates_from_names(names: Sequence[str]) -> List[BackendCandidate]:
    """Build the fallback chain from config backend names, preserving order."""
    out: List[BackendCandidate] = []
    for name in names:
        init = BACKEND_INITIALIZERS.get(name)
        if init is None:
            raise ValueError(
                f"Unknown inference backend '{name}' (expected one of: {', '.join(BACKEND_INITIALIZERS)})"
            )
        out.append(BackendCandidate(name=name, init=init))
    return out


def load_ultralytics_model(model_path: str, device: str) -> InferenceBackend:
    return UltralyticsBackend(UltralyticsConfig(model=model_path, device=device))


class ModelLoader:
    """
    Owns the detector instance and its load state.

    The lock only guards state transitions. A detection that already holds a
    detector reference keeps using it while a reload builds the next one;
    new callers see ``detector() is None`` until the reload completes.
    """

    def __init__(
        self,
        model_path: str,
        candidates: Sequence[BackendCandidate],
        artifact_loader: Callable[[str, str], InferenceBackend] = load_ultralytics_model,
    ):
        self.model_path = model_path
        self.candidates = list(candidates)
        self.artifact_loader = artifact_loader
        self._lock = threading.Lock()
        self._state = ModelState.UNLOADED
        self._backend = NO_BACKEND
        self._last_error: Optional[str] = None
        self._detector: Optional[InferenceBackend] = None

    @property
    def state(self) -> ModelState:
        with self._lock:
            return self._state

    @property
    def loaded(self) -> bool:
        return self.state is ModelState.LOADED

    @property
    def backend(self) -> str:
        with self._lock:
            return self._backend

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    def detector(self) -> Optional[InferenceBackend]:
        """Return the active detector, or None unless the model is loaded."""
        with self._lock:
            if self._state is not ModelState.LOADED:
                return None
            return self._detector

    def _begin(self, reset: bool) -> Optional[LoadResult]:
        with self._lock:
            if self._state is ModelState.LOADING:
                return LoadResult(success=False, backend=self._backend, error=LOAD_IN_PROGRESS)
            self._state = ModelState.LOADING
            if reset:
                self._detector = None
                self._last_error = None
            return None

    def load(self) -> LoadResult:
        """Select a backend and load the model. Never raises."""
        busy = self._begin(reset=False)
        if busy is not None:
            return busy
        return self._run_load()

    def reload(self) -> LoadResult:
        """Drop the current model and load again from scratch."""
        busy = self._begin(reset=True)
        if busy is not None:
            logging.warning("Reload requested while a load is in progress; ignoring")
            return busy
        logging.info("Manual model reload requested")
        return self._run_load()

    def start_background_load(self) -> Optional[threading.Thread]:
        """Kick off load() in a daemon thread so startup does not block."""
        if self._begin(reset=False) is not None:
            return None
        t = threading.Thread(target=self._run_load, name="model-loader", daemon=True)
        t.start()
        return t

    def _run_load(self) -> LoadResult:
        logging.info("Starting model load (%s)", self.model_path)
        failures: List[str] = []
        selected: Optional[BackendCandidate] = None
        device = ""

        for candidate in self.candidates:
            logging.info("Attempting inference backend: %s", candidate.name)
            try:
                device = candidate.init()
            except Exception as e:
                logging.warning("Backend %s failed: %s", candidate.name, e)
                failures.append(f"{candidate.name}: {e}")
                continue
            selected = candidate
            break

        if selected is None:
            if failures:
                error = "Inference backend failed to load: " + "; ".join(failures)
            else:
                error = "Inference backend failed to load: no backends configured"
            logging.error(error)
            return self._finish(None, NO_BACKEND, error)

        if failures:
            logging.info("Falling back to backend %s", selected.name)
        logging.info("Backend %s initialized (device=%s)", selected.name, device)

        try:
            detector = self.artifact_loader(self.model_path, device)
        except Exception as e:
            logging.exception("Model loading failed")
            return self._finish(None, selected.name, f"Model failed to load: {e}")

        logging.info("Model loaded successfully on backend %s", selected.name)
        return self._finish(detector, selected.name, None)

    def _finish(self, detector: Optional[InferenceBackend], backend: str, error: Optional[str]) -> LoadResult:
        with self._lock:
            self._detector = detector
            self._backend = backend
            self._last_error = error
            self._state = ModelState.LOADED if detector is not None else ModelState.FAILED
        return LoadResult(success=detector is not None, backend=backend, error=error)
