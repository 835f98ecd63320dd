# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# Borrowed and modified from [`skypilot`](https://github.com/skypilot-org/skypilot/blob/master/sky/adaptors/common.py).
from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from types import ModuleType


class LazyImport:
    """Defers importing a module until one of its attributes is first accessed.

    Importing ``rangeframe`` should not pay for loading pyarrow's compute kernels until
    a window is actually evaluated.
    """

    def __init__(self, module_name: str):
        self._module_name = module_name
        self._module: ModuleType | None = None

    def module_available(self) -> bool:
        try:
            self._load_module()
            return True
        except ImportError:
            return False

    def _load_module(self) -> ModuleType:
        if self._module is None:
            try:
                self._module = importlib.import_module(self._module_name)
            except ImportError as e:
                raise ImportError(f"Failed to import lazily-loaded module '{self._module_name}'.") from e
        return self._module

    def __getattr__(self, name: str) -> Any:
        # Attributes of the proxy win, then attributes of the module, then submodules.
        try:
            if name in self.__dict__:
                return self.__dict__[name]
            return getattr(self._load_module(), name)
        except AttributeError as e:
            submodule = LazyImport(f"{self._module_name}.{name}")
            if submodule.module_available():
                setattr(self, name, submodule)
                return submodule
            raise e

    def __getstate__(self) -> dict[str, Any]:
        return {"_module_name": self._module_name}

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._module_name = state["_module_name"]
        self._module = None
