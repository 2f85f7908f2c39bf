"""
Tests for model state creation from raw parameters.

Covers parameter validation and loading a real Python model module from a
temporary directory.
"""

import textwrap

import pytest

from mlstate.creator import create_model_state
from mlstate.errors import CapabilityLoadError, ConfigurationError

from conftest import FakeLoader


MODEL_SOURCE = textwrap.dedent(
    """
    class Counter:
        def __init__(self, model_file_path):
            self.model_file_path = model_file_path
            self.seen = 0

        def fit(self, bucket):
            self.seen += len(bucket)
            return {"loss": float(len(bucket)), "accuracy": 0.0, "seen": self.seen}

        def predict(self, value):
            return value * 2


    class Broken:
        def __init__(self, model_file_path):
            raise IOError("cannot open " + model_file_path)
    """
)


@pytest.fixture
def model_dir(tmp_path):
    """Fixture providing a directory with an importable model module."""
    (tmp_path / "counter_model_for_creator.py").write_text(MODEL_SOURCE)
    return tmp_path


def _params(module_path, **overrides):
    params = {
        "module_path": str(module_path),
        "module_name": "counter_model_for_creator",
        "class_name": "Counter",
        "batch_train_size": 2,
        "model_file_path": "weights.bin",
    }
    params.update(overrides)
    return params


class TestCreateModelState:
    """Test suite for create_model_state."""

    def test_creates_state_from_python_module(self, model_dir):
        state = create_model_state(_params(model_dir))

        assert state.write({"label": 1}) is None
        result = state.write({"label": 2})
        assert result == {"loss": 2.0, "accuracy": 0.0, "seen": 2}
        assert state.predict(21) == 42

        state.terminate()

    def test_string_batch_size_is_coerced(self, fake_loader):
        state = create_model_state(_params("/models", batch_train_size="16"), loader=fake_loader)

        assert state.batch_train_size == 16

    def test_model_file_path_defaults_to_empty(self, fake_loader, fake_module):
        params = _params("/models")
        del params["model_file_path"]

        create_model_state(params, loader=fake_loader)

        assert fake_module.instantiate_args == ("Counter", ("",))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"batch_train_size": 0},
            {"batch_train_size": -5},
            {"batch_train_size": "many"},
            {"module_name": ""},
            {"class_name": ""},
            {"unexpected": True},
        ],
    )
    def test_invalid_params(self, overrides):
        loader = FakeLoader(load_error=AssertionError("must not load"))

        with pytest.raises(ConfigurationError):
            create_model_state(_params("/models", **overrides), loader=loader)

        assert loader.loaded == []

    @pytest.mark.parametrize("missing", ["module_path", "module_name", "class_name", "batch_train_size"])
    def test_missing_required_param(self, missing):
        params = _params("/models")
        del params[missing]

        with pytest.raises(ConfigurationError, match=missing):
            create_model_state(params, loader=FakeLoader())

    def test_missing_module(self, model_dir):
        with pytest.raises(CapabilityLoadError, match="no_such_model_module"):
            create_model_state(_params(model_dir, module_name="no_such_model_module"))

    def test_missing_class(self, model_dir):
        with pytest.raises(CapabilityLoadError, match="has no class 'Nope'"):
            create_model_state(_params(model_dir, class_name="Nope"))

    def test_constructor_failure(self, model_dir):
        with pytest.raises(CapabilityLoadError, match="cannot open weights.bin"):
            create_model_state(_params(model_dir, class_name="Broken"))
