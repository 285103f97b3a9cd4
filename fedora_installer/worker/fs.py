# fedora_installer/worker/fs.py
from __future__ import annotations
import os, shutil
from typing import Dict, Any, Optional


def fs_exists(path: str) -> bool:
    # dangling symlinks count as present
    return os.path.lexists(path)


def fs_is_dir(path: str) -> bool:
    return os.path.isdir(path) and not os.path.islink(path)


def fs_copy(src: str, dst: str) -> Dict[str, Any]:
    """cp -a: recursive, keeps modes, timestamps and symlinks as links. dst must not be a directory."""
    os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
    if os.path.islink(src):
        if os.path.lexists(dst):
            os.remove(dst)
        os.symlink(os.readlink(src), dst)
    elif os.path.isdir(src):
        shutil.copytree(src, dst, symlinks=True, copy_function=shutil.copy2)
    else:
        shutil.copy2(src, dst, follow_symlinks=False)
    return {"ok": True, "src": src, "dst": dst}


def fs_delete(path: str) -> Dict[str, Any]:
    if not os.path.lexists(path):
        return {"ok": True, "deleted": 0}
    if fs_is_dir(path):
        shutil.rmtree(path)
    else:
        os.remove(path)
    return {"ok": True, "deleted": 1}


def fs_write(path: str, content: str, mode: Optional[int] = None, encoding: str = "utf-8") -> Dict[str, Any]:
    # replace a symlink rather than writing through it
    if os.path.islink(path):
        os.remove(path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding=encoding) as f:
        f.write(content)
    if mode is not None:
        os.chmod(path, mode)
    return {"ok": True, "path": path, "bytes": len(content)}


def fs_mkdir(path: str, mode: Optional[int] = None) -> Dict[str, Any]:
    os.makedirs(path, exist_ok=True)
    if mode is not None:
        os.chmod(path, mode)
    return {"ok": True, "path": path}


def fs_symlink(target: str, link: str) -> Dict[str, Any]:
    """ln -sfn"""
    os.makedirs(os.path.dirname(link) or ".", exist_ok=True)
    if os.path.lexists(link):
        if fs_is_dir(link):
            shutil.rmtree(link)
        else:
            os.remove(link)
    os.symlink(target, link)
    return {"ok": True, "link": link, "target": target}


def fs_chmod(path: str, mode: int) -> Dict[str, Any]:
    os.chmod(path, mode)
    return {"ok": True, "path": path, "mode": oct(mode)}
