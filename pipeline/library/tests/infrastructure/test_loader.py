"""Tests for the in-process Python model capability."""

import sys
import textwrap

import pytest

from mlstate.errors import CapabilityLoadError, ModelCallError
from mlstate_infra.loader import PythonInstance, PythonModule, PythonModuleLoader


@pytest.fixture
def model_dir(tmp_path):
    """Fixture providing a directory with an importable model module."""
    (tmp_path / "echo_model_for_loader.py").write_text(
        textwrap.dedent(
            """
            class Echo:
                def __init__(self, *args):
                    self.args = args

                def predict(self, value):
                    return {"echo": value, "args": list(self.args)}

                def fail(self):
                    raise ValueError("model failure")

                not_callable = 42
            """
        )
    )
    return tmp_path


class TestPythonModuleLoader:
    """Test suite for module loading and instance calls."""

    def test_load_instantiate_call(self, model_dir):
        module = PythonModuleLoader().load(str(model_dir), "echo_model_for_loader")
        instance = module.instantiate("Echo", "weights.bin")

        assert module.name == "echo_model_for_loader"
        assert instance.call("predict", 3) == {"echo": 3, "args": ["weights.bin"]}
        assert str(model_dir) in sys.path

    def test_path_appended_once(self, model_dir):
        loader = PythonModuleLoader()
        loader.load(str(model_dir), "echo_model_for_loader")
        loader.load(str(model_dir), "echo_model_for_loader")

        assert sys.path.count(str(model_dir)) == 1

    def test_missing_module(self, tmp_path):
        with pytest.raises(CapabilityLoadError, match="cannot load module 'absent_model_module'"):
            PythonModuleLoader().load(str(tmp_path), "absent_model_module")

    def test_missing_class(self, model_dir):
        module = PythonModuleLoader().load(str(model_dir), "echo_model_for_loader")

        with pytest.raises(CapabilityLoadError, match="has no class 'Missing'"):
            module.instantiate("Missing")


class TestPythonInstance:
    """Test suite for instance calls and release."""

    def test_unknown_method(self):
        with pytest.raises(ModelCallError, match="has no method 'nope'"):
            PythonInstance(object()).call("nope")

    def test_non_callable_attribute(self, model_dir):
        module = PythonModuleLoader().load(str(model_dir), "echo_model_for_loader")
        instance = module.instantiate("Echo")

        with pytest.raises(ModelCallError, match="not_callable"):
            instance.call("not_callable")

    def test_model_exception_is_wrapped(self, model_dir):
        instance = PythonModuleLoader().load(str(model_dir), "echo_model_for_loader").instantiate("Echo")

        with pytest.raises(ModelCallError, match="ValueError: model failure") as exc_info:
            instance.call("fail")

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_release_is_idempotent(self):
        instance = PythonInstance(object())

        instance.release()
        instance.release()

        with pytest.raises(ModelCallError, match="released"):
            instance.call("predict", 1)

    def test_released_module_cannot_instantiate(self, model_dir):
        module = PythonModuleLoader().load(str(model_dir), "echo_model_for_loader")
        module.release()
        module.release()

        assert isinstance(module, PythonModule)
        with pytest.raises(CapabilityLoadError, match="released"):
            module.instantiate("Echo")
