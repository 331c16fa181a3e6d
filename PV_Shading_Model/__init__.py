import subprocess
from pathlib import Path

__version__ = "0.1.0"

def _git_output(root, *args):
    return subprocess.check_output(["git", "-C", str(root), *args],
                                   stderr=subprocess.DEVNULL).decode().strip()

def _get_git_info():
    root = Path(__file__).resolve().parent
    try:
        git_hash = _git_output(root, "rev-parse", "HEAD")
        git_date = _git_output(root, "show", "-s", "--format=%cI", "HEAD") # ISO 8601
        dirty = len(_git_output(root, "status", "--porcelain")) > 0
        return git_hash, git_date, dirty
    except (OSError, subprocess.CalledProcessError):
        return None, None, None

__git_hash__, __git_date__, __dirty__ = _get_git_info()
