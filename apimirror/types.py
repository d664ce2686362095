from dataclasses import dataclass

type ExitCode = int
type ImportPath = str


@dataclass(frozen=True, slots=True)
class Revision:
    tag: str

    def __str__(self) -> str:
        return self.tag
