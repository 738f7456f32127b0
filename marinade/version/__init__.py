"""
Provides the version of the Marinade distribution.
"""

#: Version (as a tuple of ints).
VERSION = (0, 9, 0)

#: Suffix marking a pre-release (for example ``"b1"``) or ``""``.
PRE_RELEASE = "b1"

#: Version (as a string), for example ``"0.9.0b1"``.
VERSION_STRING = ".".join(str(component) for component in VERSION) + (
    PRE_RELEASE
)
