"""Android build targets and their string representations."""

from __future__ import annotations

from enum import Enum

from common.errors import UnsupportedTarget


class Target(Enum):
    """The four Android ABIs an APK can carry native code for.

    Each member maps to exactly one string per representation:

    - ``rust_triple``: triple used by the compiler toolchain;
    - ``android_abi``: directory name under ``lib/`` inside the APK;
    - ``ndk_triple``: triple of the NDK sysroot and GNU binutils.
    """

    ARMV7A = 1
    ARM64_V8A = 2
    X86 = 3
    X86_64 = 4

    @property
    def rust_triple(self) -> str:
        return _RUST_TRIPLES[self]

    @property
    def android_abi(self) -> str:
        return _ANDROID_ABIS[self]

    @property
    def ndk_triple(self) -> str:
        return _NDK_TRIPLES[self]

    @classmethod
    def from_rust_triple(cls, triple: str) -> "Target":
        return _reverse(_RUST_TRIPLES, triple)

    @classmethod
    def from_android_abi(cls, abi: str) -> "Target":
        return _reverse(_ANDROID_ABIS, abi)

    @classmethod
    def from_ndk_triple(cls, triple: str) -> "Target":
        return _reverse(_NDK_TRIPLES, triple)

    @classmethod
    def parse(cls, value: str) -> "Target":
        """Accept a rust triple, an Android ABI name or an NDK triple.

        Raises:
            UnsupportedTarget: If ``value`` matches none of them.
        """
        value = value.strip()
        for lookup in (cls.from_rust_triple, cls.from_android_abi, cls.from_ndk_triple):
            try:
                return lookup(value)
            except UnsupportedTarget:
                continue
        raise UnsupportedTarget(value)

    def __str__(self) -> str:
        return self.rust_triple


_RUST_TRIPLES = {
    Target.ARMV7A: "armv7-linux-androideabi",
    Target.ARM64_V8A: "aarch64-linux-android",
    Target.X86: "i686-linux-android",
    Target.X86_64: "x86_64-linux-android",
}

_ANDROID_ABIS = {
    Target.ARMV7A: "armeabi-v7a",
    Target.ARM64_V8A: "arm64-v8a",
    Target.X86: "x86",
    Target.X86_64: "x86_64",
}

_NDK_TRIPLES = {
    Target.ARMV7A: "arm-linux-androideabi",
    Target.ARM64_V8A: "aarch64-linux-android",
    Target.X86: "i686-linux-android",
    Target.X86_64: "x86_64-linux-android",
}

def _reverse(table: dict, value: str) -> Target:
    for target, name in table.items():
        if name == value:
            return target
    raise UnsupportedTarget(value)
