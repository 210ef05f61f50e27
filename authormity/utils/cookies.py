"""
Explicit cookie reader/writer threaded through the auth flow.
Services record writes and deletions here; the route applies them to the real response.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from starlette.responses import Response


@dataclass(frozen=True)
class CookieWrite:
    name: str
    value: str
    max_age: int
    httponly: bool = True
    secure: bool = True
    samesite: str = "lax"
    path: str = "/"


@dataclass
class CookieContext:
    incoming: Mapping[str, str] = field(default_factory=dict)
    writes: List[CookieWrite] = field(default_factory=list)
    deletions: List[str] = field(default_factory=list)

    def get(self, name: str) -> Optional[str]:
        if name in self.deletions:
            return None
        return self.incoming.get(name)

    def set(self, name: str, value: str, *, max_age: int, secure: bool = True) -> None:
        self.writes.append(CookieWrite(name=name, value=value, max_age=max_age, secure=secure))
        if name in self.deletions:
            self.deletions.remove(name)

    def delete(self, name: str) -> None:
        self.writes = [w for w in self.writes if w.name != name]
        if name not in self.deletions:
            self.deletions.append(name)

    def written(self) -> Dict[str, CookieWrite]:
        return {w.name: w for w in self.writes}

    def apply(self, response: Response) -> Response:
        for name in self.deletions:
            response.delete_cookie(name, path="/")
        for w in self.writes:
            response.set_cookie(
                key=w.name,
                value=w.value,
                max_age=w.max_age,
                httponly=w.httponly,
                secure=w.secure,
                samesite=w.samesite,
                path=w.path,
            )
        return response
