"""Success/failure results for operations that routinely fail on untrusted input.

Programmer errors (out-of-range arguments and the like) raise immediately. Anything that can fail because of the
data it was handed, or because a bounded random search ran dry, returns an `Outcome` instead, so callers are forced
to look at the result before using it.

Typical usage example:

    res = RSAPublicKey.from_string(text)
    if res.not_ok:
        print(res.msg)
    key = res.info
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import typing


class OutcomeError(RuntimeError):
    """Raised by `Outcome.unwrap` when the outcome is not ok."""


class Outcome(typing.NamedTuple):
    """The result of a recoverable operation.

    Attributes:
        ok: Whether the operation succeeded.
        msg: Explanation of the failure. Always None for an ok outcome.
        cause: Optional exception that led to the failure.
        info: The value produced by the operation.
    """
    ok: bool
    msg: str | None = None
    cause: BaseException | None = None
    info: typing.Any = None

    @property
    def not_ok(self) -> bool:
        return not self.ok

    def unwrap(self) -> typing.Any:
        """Returns `info` of an ok outcome.

        Raises:
            OutcomeError: If the outcome is not ok, chained to `cause` when present.
        """
        if self.ok:
            return self.info
        raise OutcomeError(self.msg) from self.cause

    def __str__(self) -> str:
        if self.ok:
            return "OK" if self.info is None else f"OK: {self.info}"
        if self.cause is None:
            return f"Not OK: {self.msg}"
        return f"Not OK: {self.msg}\n{self.cause!r}"


def success(info: typing.Any = None) -> Outcome:
    """Builds an ok outcome carrying `info`."""
    return Outcome(True, None, None, info)


def failure(msg: str, cause: BaseException | None = None, info: typing.Any = None) -> Outcome:
    """Builds a not-ok outcome.

    Args:
        msg: Explanation of the failure. Must be non-empty.
        cause: Optional exception that led to the failure.
        info: Optional partial value.

    Raises:
        ValueError: If `msg` is empty.
    """
    if not msg:
        raise ValueError("Message must be supplied with not ok outcome")
    return Outcome(False, msg, cause, info)
