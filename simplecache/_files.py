from __future__ import annotations

import os
import typing as tp
from pathlib import Path

import anyio


class AsyncBaseFileManager:
    async def write_to(self, path: Path, data: bytes) -> None:
        raise NotImplementedError()

    async def read_from(self, path: Path) -> tp.Optional[bytes]:
        raise NotImplementedError()

    async def remove(self, path: Path) -> None:
        raise NotImplementedError()


class AsyncFileManager(AsyncBaseFileManager):
    async def write_to(self, path: Path, data: bytes) -> None:
        async with await anyio.open_file(path, "wb") as f:
            await f.write(data)

    async def read_from(self, path: Path) -> tp.Optional[bytes]:
        try:
            async with await anyio.open_file(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            return None

    async def remove(self, path: Path) -> None:
        try:
            await anyio.Path(path).unlink()
        except FileNotFoundError:  # pragma: no cover
            pass


class BaseFileManager:
    def write_to(self, path: Path, data: bytes) -> None:
        raise NotImplementedError()

    def read_from(self, path: Path) -> tp.Optional[bytes]:
        raise NotImplementedError()

    def remove(self, path: Path) -> None:
        raise NotImplementedError()


class FileManager(BaseFileManager):
    def write_to(self, path: Path, data: bytes) -> None:
        with open(path, "wb") as f:
            f.write(data)

    def read_from(self, path: Path) -> tp.Optional[bytes]:
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def remove(self, path: Path) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:  # pragma: no cover
            pass
