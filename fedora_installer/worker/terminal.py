# fedora_installer/worker/terminal.py
from __future__ import annotations
import os, shlex, subprocess
from typing import Dict, Any, List, Optional

from loguru import logger


def terminal_run(cmd: List[str], timeout_sec: int = 120, cwd: Optional[str] = None,
                 env: Optional[dict] = None, input_text: Optional[str] = None) -> Dict[str, Any]:
    logger.log("VERBOSE", f"  Command: {shlex.join(cmd)}")
    try:
        proc = subprocess.run(
            cmd, cwd=cwd, env={**os.environ, **(env or {})}, input=input_text,
            capture_output=True, text=True, timeout=timeout_sec,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"timeout_{timeout_sec}s"}
    except OSError as e:
        return {"ok": False, "code": None, "error": f"exec_error: {e}"}
    rc = proc.returncode
    return {"ok": rc == 0, "code": rc, "stdout": proc.stdout, "stderr": proc.stderr}
