from __future__ import annotations


class GrubPbkdf2Error(Exception):
    """凭据生成流程的终止性错误。"""


class InputError(GrubPbkdf2Error):
    """未能读取到密码。"""

    def __init__(self, message: str = "Failure to read password") -> None:
        super().__init__(message)


class MismatchError(GrubPbkdf2Error):
    """两次输入的密码不一致。"""

    def __init__(self, message: str = "Passwords don't match") -> None:
        super().__init__(message)


class EntropyError(GrubPbkdf2Error):
    """随机源不可用或读取不足。"""

    def __init__(self, message: str = "Couldn't retrieve random data for salt") -> None:
        super().__init__(message)


class DerivationError(GrubPbkdf2Error):
    """PBKDF2 原语拒绝参数或内部失败。"""

    def __init__(self, code: int, detail: str = "") -> None:
        self.code = int(code)
        self.detail = detail
        super().__init__(f"Cryptographic error number {self.code}")


class AllocationError(GrubPbkdf2Error):
    """敏感缓冲区分配失败。"""

    def __init__(self, message: str = "Out of memory") -> None:
        super().__init__(message)


class OutputError(GrubPbkdf2Error):
    """凭据行写出失败。"""

    def __init__(self, message: str = "Failure to write credential") -> None:
        super().__init__(message)
