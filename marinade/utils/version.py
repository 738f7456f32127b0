"""
Utility functions for calculating version strings.

Version strings provide a simple tool for finding out whether a template has
changed. Template engines use them as the default compile cache key.

Internally, they are calculated using the MD5 hash function. It is designed in
a way that accidental collisions are very unlikely.

Due to the nature of hash functions, a collision can never be avoided with
absolute certainty, so version strings should only be used when the risk
associated with using an outdated resource is acceptable.
"""

import hashlib
import typing


def aggregate_version(versions: typing.Iterable[str]) -> str:
    """
    Calculate an aggregate version from several version strings.

    The aggregate version string is created by calculated a hash over the input
    strings. Each input is prefixed with its length, so that moving characters
    from one input to the next one results in a different version.

    :param versions:
        iterable object that provides ``str`` objects that represent the input
        version strings.
    :return:
        aggregate version string based on the input versions.
    """
    return _hash_str(
        "|".join(f"{len(version)}:{version}" for version in versions)
    )


def _hash_str(data: str) -> str:
    hasher = hashlib.md5()
    hasher.update(data.encode(errors="surrogatepass"))
    return hasher.hexdigest()
