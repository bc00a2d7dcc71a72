import sys
print("Python:", sys.executable, sys.version)
try:
    import PySide6
    print("PySide6:", PySide6.__version__)
except ImportError:
    print("PySide6: NOT INSTALLED")
try:
    import pytest
    print("pytest:", pytest.__version__)
except ImportError:
    print("pytest: NOT INSTALLED")
try:
    from loadtrack.core.state_machine import LoadingStateMachine
    print("loadtrack:", LoadingStateMachine().state.value)
except ImportError as exc:
    print("loadtrack: NOT IMPORTABLE", exc)
