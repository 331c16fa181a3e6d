import numpy as np
from numbers import Number
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Callable
import json
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
PARAM_DIR = PACKAGE_ROOT / "parameters"

@dataclass
class ParameterSet:
    # ----- identity / metadata -----
    name: str                              # e.g. "cell_presets"
    filename: str | Path | None = None     # e.g. "cell_presets.json"
    loader: Callable[[str], Any] | None = None  # optional custom loader
    data: Any = None
    success_init: bool = field(init=False, default=True)

    # ----- global registry of all instances -----
    _registry: ClassVar[Dict[str, "ParameterSet"]] = {}

    def __post_init__(self):
        if self.filename is not None and self.data is None:
            self.data = self.load()
        ParameterSet._registry[self.name] = self

    def load(self):
        # a broken or missing file leaves data empty, callers fall back to defaults
        try:
            if self.loader is not None:
                return self.loader(self.filename)
            with Path(self.filename).open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            self.success_init = False
            print(f"[ParameterSet Warning] Failed to load {self.filename} Error: {e}")
            return None

    def __call__(self):
        return self.data

    def __getitem__(self, key):
        if isinstance(self.data, dict):
            return self.data.get(key)
        return None

    def __contains__(self, key):
        return isinstance(self.data, dict) and key in self.data

    def get(self, key, default=None):
        value = self[key]
        if value is None:
            return default
        return value

    def set(self,key,value):
        if isinstance(self.data, dict):
            self.data[key] = value

    @classmethod
    def get_registry(cls) -> Dict[str, "ParameterSet"]:
        return dict(cls._registry)

    @classmethod
    def get_set(cls,name):
        dict_ = cls.get_registry()
        if name in dict_:
            return dict_[name]
        return None

def load_parameter_set(name, filename=None, defaults=None):
    # file values win, anything missing (or an unreadable file) falls back to defaults
    parameter_set = ParameterSet(name=name, filename=filename)
    if not isinstance(parameter_set.data, dict):
        parameter_set.data = {}
    if defaults is not None:
        for key, value in defaults.items():
            if key not in parameter_set:
                parameter_set.set(key, value)
    return parameter_set

ParameterSet(name="VT_at_25C",data=0.026)
VT_at_25C = ParameterSet.get_set("VT_at_25C")()

solver_env_variables = load_parameter_set("solver_env_variables",
                                          filename=PARAM_DIR / "solver_env_variables.json",
                                          defaults={"NUM_CELL_SAMPLES": 200,
                                                    "NUM_STRING_SAMPLES": 200,
                                                    "DARK_IRRADIANCE_RATIO": 0.001,
                                                    "LOG_IRRADIANCE_RATIO": 0.01,
                                                    "MAX_EXPONENT": 20.0})

def interp_(x, xp, fp):
    # xp is monotone in either direction; queries outside xp clamp to the end values
    xp = np.asarray(xp, dtype=np.float64)
    fp = np.asarray(fp, dtype=np.float64)
    if xp.size==0:
        if isinstance(x,Number):
            return 0.0
        return np.zeros_like(np.asarray(x, dtype=np.float64))
    if xp.size==1:
        if isinstance(x,Number):
            return float(fp[0])
        return fp[0]*np.ones_like(np.asarray(x, dtype=np.float64))
    if xp[-1] >= xp[0]:
        y = np.interp(x, xp, fp)
    else:
        y = np.interp(-np.asarray(x, dtype=np.float64), -xp, fp)
    if isinstance(x,Number):
        return float(y)
    return y
