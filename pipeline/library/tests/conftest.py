"""Pytest configuration and shared fixtures for library tests."""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


class FakeInstance:
    """
    Model instance handle recording calls for assertions.

    Fit returns {"loss": ..., "accuracy": ...} unless fit_result is given;
    methods listed in failing raise RuntimeError.
    """

    def __init__(self, events: list, fit_result=None, failing: set | None = None):
        self.events = events
        self.fit_result = fit_result if fit_result is not None else {"loss": 1.0, "accuracy": 0.5}
        self.failing = failing or set()
        self.calls = []
        self.released = 0

    def call(self, method, *args):
        self.calls.append((method, args))
        if method in self.failing:
            raise RuntimeError(f"{method} exploded")
        if method == "fit":
            return self.fit_result
        if method == "predict":
            return {"prediction": args[0]}
        return {"method": method, "args": list(args)}

    def fit_batches(self):
        return [args[0] for method, args in self.calls if method == "fit"]

    def release(self):
        self.released += 1
        self.events.append("instance.release")


class FakeModule:
    """Module handle creating a FakeInstance, or failing to."""

    def __init__(self, events: list, instantiate_error: Exception | None = None, **instance_kwargs):
        self.events = events
        self.instantiate_error = instantiate_error
        self.instance_kwargs = instance_kwargs
        self.instance = None
        self.instantiate_args = None
        self.released = 0

    def instantiate(self, class_name, *args):
        self.instantiate_args = (class_name, args)
        if self.instantiate_error is not None:
            raise self.instantiate_error
        self.instance = FakeInstance(self.events, **self.instance_kwargs)
        return self.instance

    def release(self):
        self.released += 1
        self.events.append("module.release")


class FakeLoader:
    """CapabilityLoader returning a prepared FakeModule."""

    def __init__(self, module: FakeModule | None = None, load_error: Exception | None = None):
        self.module = module
        self.load_error = load_error
        self.loaded = []

    def load(self, module_path, module_name):
        self.loaded.append((module_path, module_name))
        if self.load_error is not None:
            raise self.load_error
        return self.module


@pytest.fixture
def events():
    """Fixture providing a shared list of release events in call order."""
    return []


@pytest.fixture
def fake_module(events):
    """Fixture providing a module handle whose instances succeed."""
    return FakeModule(events)


@pytest.fixture
def fake_loader(fake_module):
    """Fixture providing a loader for fake_module."""
    return FakeLoader(fake_module)


@pytest.fixture
def make_state(fake_loader):
    """Fixture providing a factory of ModelState over fake handles."""
    from mlstate.state import ModelState

    def _make(batch_train_size: int = 3, **kwargs):
        return ModelState.load(
            fake_loader,
            module_path="/models",
            module_name="mnist_model",
            class_name="MLP",
            batch_train_size=batch_train_size,
            model_file_path="model.bin",
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_record():
    """Fixture providing a labeled record as written by the stream."""
    return {"label": 7, "data": [0.0, 0.5, 1.0]}


def write_mnist_files(directory: Path, labels: list[int], pixels: list[list[int]]) -> tuple[str, str]:
    """Write MNIST-layout images and labels files and return their paths."""
    images_path = directory / "images.idx3-ubyte"
    labels_path = directory / "labels.idx1-ubyte"
    images_path.write_bytes(b"\x00" * 16 + bytes(value for row in pixels for value in row))
    labels_path.write_bytes(b"\x00" * 8 + bytes(labels))
    return str(images_path), str(labels_path)


@pytest.fixture
def write_mnist(tmp_path):
    """Fixture providing write_mnist_files bound to a temporary directory."""
    return lambda labels, pixels: write_mnist_files(tmp_path, labels, pixels)


@pytest.fixture
def mnist_files(tmp_path):
    """Fixture providing 5 examples of 4 pixels each; pixel values encode the index."""
    labels = [3, 1, 4, 1, 5]
    pixels = [[i, 255, 0, 51 * i] for i in range(5)]
    images_path, labels_path = write_mnist_files(tmp_path, labels, pixels)
    return {
        "images_file_name": images_path,
        "labels_file_name": labels_path,
        "data_size": 5,
        "image_element_size": 4,
        "labels": labels,
        "pixels": pixels,
    }
