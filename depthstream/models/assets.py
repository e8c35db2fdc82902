import os

from ..errors import ModelLoadError

MODEL_EXTENSIONS = (".onnx",)


def list_models(model_dir):
    """Model files found in model_dir, sorted by name."""
    if not os.path.isdir(model_dir):
        return []
    return sorted(
        f for f in os.listdir(model_dir)
        if f.lower().endswith(MODEL_EXTENSIONS) and os.path.isfile(os.path.join(model_dir, f))
    )


def resolve_model_path(model_dir, name):
    if os.path.isfile(name):
        return name
    path = os.path.join(model_dir, name)
    if not os.path.isfile(path):
        raise ModelLoadError(f"Model not found: {name} (looked in {model_dir})")
    return path
