from __future__ import annotations

import typing as tp
from dataclasses import dataclass

import httpx

__all__ = ("Hit", "Miss", "Lookup", "Success", "Failure", "Outcome")


@dataclass
class Hit:
    """A stored payload was found and decoded."""

    response: httpx.Response


@dataclass
class Miss:
    """Nothing usable was stored under the key."""


Lookup = tp.Union[Hit, Miss]


@dataclass
class Success:
    response: httpx.Response


@dataclass
class Failure:
    error: Exception


Outcome = tp.Union[Success, Failure]
