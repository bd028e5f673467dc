import sys
import pytest
from unittest.mock import patch

MODULES = ("remitbot.main", "remitbot.api.routes", "remitbot.queue.jobs")

@pytest.mark.parametrize("delivery_mode", ["inline", "rq"])
def test_import_graph_smoke(delivery_mode):
    """
    Verify that the app can be imported without crashing,
    regardless of the reply delivery mode.
    """
    saved = {m: sys.modules.get(m) for m in MODULES}
    with patch.dict("os.environ", {
        "REPLY_DELIVERY_MODE": delivery_mode,
        "REDIS_URL": "redis://localhost:6379/0",  # harmless default
    }):
        for mod in MODULES:
            sys.modules.pop(mod, None)
        try:
            import remitbot.main
            import remitbot.api.routes
            import remitbot.queue.jobs
        except ImportError as e:
            pytest.fail(f"Import failed with delivery mode {delivery_mode}: {e}")
        finally:
            # keep the module objects other tests already patch against
            for mod, original in saved.items():
                if original is not None:
                    sys.modules[mod] = original
                    parent, _, child = mod.rpartition(".")
                    setattr(sys.modules[parent], child, original)

def test_uvicorn_importable():
    """
    Simulate uvicorn import string loading.
    """
    from remitbot.main import app
    assert app is not None

def test_every_registered_command_is_lowercase():
    from remitbot.core.dispatcher import COMMANDS
    assert all(name == name.lower() for name in COMMANDS)
