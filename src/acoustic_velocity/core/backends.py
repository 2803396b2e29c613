"""Parallel field stepping backends.

The wave solvers never touch a compute framework directly. They allocate
fields, inject the source, sample the receiver and advance the field
through a ParallelFieldStepper, which owns every buffer it hands out and
frees them all on release().

Implementations:
    NumpyFieldStepper: vectorized CPU kernels on numpy arrays
    TorchFieldStepper: the same kernels on PyTorch tensors, dispatched to
        CUDA or Apple MPS (or torch CPU threads when asked explicitly)

The update kernels are written once in the base class using only slicing
and elementwise arithmetic, which numpy arrays and torch tensors share.

Example:
    >>> from acoustic_velocity.core.backends import select_stepper
    >>> stepper = select_stepper("auto")  # GPU when available, else CPU
    >>> u = stepper.allocate((200,))
    >>> stepper.release()

Memory Usage:
    - 1D solvers: 4 fields × n × 4 bytes (u, v, c², sponge)
    - 3D solver: 4 fields × nx × ny × nz × 4 bytes (3 ring buffers + c²)
    - Largest 3D grid (64³): 4 × 262144 × 4 B = 4 MB
"""

from __future__ import annotations

import warnings
from abc import ABC, abstractmethod
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

# Check for PyTorch and accelerator availability
_HAS_TORCH = False
_HAS_CUDA = False
_HAS_MPS = False
_torch = None

try:
    import torch
    _torch = torch
    _HAS_TORCH = True
    _HAS_CUDA = torch.cuda.is_available()
    _HAS_MPS = torch.backends.mps.is_available() and torch.backends.mps.is_built()
except ImportError:
    pass

BOUNDARY_WIDTH = 2

BackendName = Literal["auto", "gpu", "cpu"]


def has_gpu_support() -> bool:
    """Check if a GPU (CUDA or MPS) backend is available.

    Returns:
        True if PyTorch is installed and sees a CUDA or MPS device.
    """
    return _HAS_CUDA or _HAS_MPS


def get_gpu_info() -> dict:
    """Get information about GPU support.

    Returns:
        Dict with keys: available, backend, pytorch_version
    """
    if not _HAS_TORCH:
        return {
            "available": False,
            "backend": None,
            "pytorch_version": None,
        }
    backend = "cuda" if _HAS_CUDA else "mps" if _HAS_MPS else None
    return {
        "available": has_gpu_support(),
        "backend": backend,
        "pytorch_version": _torch.__version__,
    }


class ParallelFieldStepper(ABC):
    """Capability for allocating and advancing wave fields.

    Subclasses provide buffer allocation and host transfer; the update
    kernels are shared. Buffers are tracked so release() can drop them
    all at the end of a solver run.
    """

    name = "abstract"
    device = "cpu"

    def __init__(self):
        self._buffers: list[Any] = []

    # -------------------------------------------------------------------------
    # Buffer management
    # -------------------------------------------------------------------------

    @abstractmethod
    def _zeros(self, shape: tuple[int, ...]) -> Any:
        """Create a zeroed float32 buffer on the backend."""

    @abstractmethod
    def _from_host(self, array: NDArray) -> Any:
        """Copy a host array into a new float32 backend buffer."""

    @abstractmethod
    def to_host(self, buffer: Any) -> NDArray[np.float32]:
        """Copy a backend buffer into a new numpy array."""

    def allocate(self, shape: tuple[int, ...]) -> Any:
        """Allocate a zeroed field owned by this stepper."""
        buffer = self._zeros(tuple(int(n) for n in shape))
        self._buffers.append(buffer)
        return buffer

    def upload(self, array: NDArray) -> Any:
        """Copy a host array into a field owned by this stepper."""
        buffer = self._from_host(np.ascontiguousarray(array, dtype=np.float32))
        self._buffers.append(buffer)
        return buffer

    def synchronize(self) -> None:
        """Wait for queued device work to finish."""

    def release(self) -> None:
        """Drop every buffer allocated since the last release."""
        self._buffers.clear()

    @property
    def num_buffers(self) -> int:
        """Number of live buffers."""
        return len(self._buffers)

    @property
    def allocated_bytes(self) -> int:
        """Bytes held by live buffers (float32)."""
        return sum(4 * int(np.prod(tuple(b.shape))) for b in self._buffers)

    # -------------------------------------------------------------------------
    # Point access
    # -------------------------------------------------------------------------

    def add_at(self, buffer: Any, index: tuple[int, ...], value: float) -> None:
        """Add a scalar to one cell (source injection)."""
        buffer[index] += float(value)

    def value_at(self, buffer: Any, index: tuple[int, ...]) -> float:
        """Read one cell (receiver sampling)."""
        return float(buffer[index])

    # -------------------------------------------------------------------------
    # Kernels
    # -------------------------------------------------------------------------

    def damped_wave_step(
        self,
        u: Any,
        v: Any,
        c2: Any,
        sponge: Any,
        damping: float,
        dt: float,
        dx: float,
    ) -> None:
        """Advance a 1D displacement/velocity pair by one timestep.

        a = c²·∂²u/∂x² - damping·v,  v += a·dt,  u += v·dt

        The outer BOUNDARY_WIDTH cells are zeroed and both fields are
        multiplied by the sponge profile.
        """
        inv_dx2 = 1.0 / (dx * dx)
        lap = (u[2:] - 2.0 * u[1:-1] + u[:-2]) * inv_dx2
        accel = c2[1:-1] * lap - damping * v[1:-1]
        v[1:-1] += accel * dt
        u[1:-1] += v[1:-1] * dt

        w = BOUNDARY_WIDTH
        u[:w] = 0.0
        u[-w:] = 0.0
        v[:w] = 0.0
        v[-w:] = 0.0
        u *= sponge
        v *= sponge

    def leapfrog_step(
        self,
        ring: FieldRing,
        c2: Any,
        damping: float,
        dt: float,
        dx: float,
        side_weight: float = 1.0,
        center_weight: float = 6.0,
    ) -> None:
        """Advance a 3D field held in a three-buffer ring by one timestep.

        next = 2·current - prev + dt²·(c²·∇²current - damping·(current - prev)/dt)

        The Laplacian uses the 6-point stencil
        ``(side_weight·Σneighbours - center_weight·center) / dx²``.
        The result is written into ring.next, the BOUNDARY_WIDTH shell is
        zeroed and the ring is rotated.
        """
        cur = ring.current
        prev = ring.prev
        nxt = ring.next
        inner = (slice(1, -1), slice(1, -1), slice(1, -1))

        neighbours = (
            cur[2:, 1:-1, 1:-1]
            + cur[:-2, 1:-1, 1:-1]
            + cur[1:-1, 2:, 1:-1]
            + cur[1:-1, :-2, 1:-1]
            + cur[1:-1, 1:-1, 2:]
            + cur[1:-1, 1:-1, :-2]
        )
        center = cur[inner]
        lap = (side_weight * neighbours - center_weight * center) * (1.0 / (dx * dx))
        accel = c2[inner] * lap - (damping / dt) * (center - prev[inner])
        nxt[inner] = 2.0 * center - prev[inner] + (dt * dt) * accel

        w = BOUNDARY_WIDTH
        nxt[:w] = 0.0
        nxt[-w:] = 0.0
        nxt[:, :w] = 0.0
        nxt[:, -w:] = 0.0
        nxt[:, :, :w] = 0.0
        nxt[:, :, -w:] = 0.0

        ring.rotate()


class FieldRing:
    """Three same-shaped buffers addressed by rotating index.

    After rotate(), prev is the old current, current is the old next, and
    next reuses the old prev buffer. No buffer is reallocated.

    Example:
        >>> ring = FieldRing(NumpyFieldStepper(), (16, 16, 16))
        >>> a = ring.current
        >>> ring.rotate()
        >>> ring.prev is a
        True
    """

    def __init__(self, stepper: ParallelFieldStepper, shape: tuple[int, int, int]):
        self._buffers = [stepper.allocate(shape) for _ in range(3)]
        self._head = 0

    @property
    def prev(self) -> Any:
        return self._buffers[self._head]

    @property
    def current(self) -> Any:
        return self._buffers[(self._head + 1) % 3]

    @property
    def next(self) -> Any:
        return self._buffers[(self._head + 2) % 3]

    def rotate(self) -> None:
        self._head = (self._head + 1) % 3


class NumpyFieldStepper(ParallelFieldStepper):
    """Vectorized CPU stepper on numpy float32 arrays."""

    name = "cpu"

    def _zeros(self, shape):
        return np.zeros(shape, dtype=np.float32)

    def _from_host(self, array):
        return array.copy()

    def to_host(self, buffer):
        return np.array(buffer, dtype=np.float32, copy=True)


class TorchFieldStepper(ParallelFieldStepper):
    """GPU-dispatch stepper on PyTorch float32 tensors.

    Args:
        device: "auto" picks CUDA, then MPS; "cpu" runs torch on CPU threads

    Raises:
        ImportError: If PyTorch is not installed
        RuntimeError: If no requested device is available or it fails to
            initialize
    """

    name = "gpu"

    def __init__(self, device: Literal["auto", "cuda", "mps", "cpu"] = "auto"):
        super().__init__()
        if not _HAS_TORCH:
            raise ImportError(
                "PyTorch is required for the GPU backend. "
                "Install with: pip install acoustic-velocity[gpu]"
            )

        if device == "auto":
            if _HAS_CUDA:
                device = "cuda"
            elif _HAS_MPS:
                device = "mps"
            else:
                raise RuntimeError("No CUDA or MPS device available")
        elif device == "cuda" and not _HAS_CUDA:
            raise RuntimeError("CUDA device requested but not available")
        elif device == "mps" and not _HAS_MPS:
            raise RuntimeError("MPS device requested but not available")

        self.device = device
        if device == "cpu":
            self.name = "torch-cpu"
        # Touch the device so initialization failures surface here
        _torch.zeros(1, device=self.device, dtype=_torch.float32)

    def _zeros(self, shape):
        return _torch.zeros(shape, device=self.device, dtype=_torch.float32)

    def _from_host(self, array):
        return _torch.from_numpy(array.copy()).to(self.device)

    def to_host(self, buffer):
        return buffer.detach().cpu().numpy().copy()

    def synchronize(self) -> None:
        if self.device == "cuda":
            _torch.cuda.synchronize()
        elif self.device == "mps":
            _torch.mps.synchronize()

    def release(self) -> None:
        super().release()
        if self.device == "cuda":
            _torch.cuda.empty_cache()
        elif self.device == "mps":
            _torch.mps.empty_cache()


def select_stepper(backend: BackendName = "auto") -> ParallelFieldStepper:
    """Choose a field stepper, falling back to CPU if the GPU fails.

    Args:
        backend: "auto" (GPU if available, silently CPU otherwise), "gpu"
            (GPU, warning on fallback) or "cpu"

    Returns:
        Initialized ParallelFieldStepper

    Raises:
        ValueError: If backend is not recognized
    """
    if backend not in ("auto", "gpu", "cpu"):
        raise ValueError(f"Unknown backend '{backend}'. Use 'auto', 'gpu' or 'cpu'.")

    if backend == "cpu":
        return NumpyFieldStepper()

    try:
        return TorchFieldStepper("auto")
    except (ImportError, RuntimeError) as e:
        if backend == "gpu":
            warnings.warn(
                f"GPU backend unavailable ({e}). Falling back to CPU stepper.",
                UserWarning,
                stacklevel=2,
            )
        return NumpyFieldStepper()
