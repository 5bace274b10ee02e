"""
Error taxonomy
==============

Every failure raised by the package derives from ``ZKPreimageError``.

The ``fatal`` class attribute tells the caller how far a failure reaches:

  | error                    | fatal | meaning                                   |
  |--------------------------|-------|-------------------------------------------|
  | SetupError               | yes   | bad descriptor / curve, setup misuse      |
  | ArtifactError            | yes   | missing, corrupt or mismatched artifacts  |
  | WitnessError             | no    | a value does not fit the scalar field     |
  | UnsatisfiedConstraint    | no    | secret does not hash to the claimed digest|
  | MarshalError             | yes   | calldata contract violated                |
  | ChainCallError           | no    | revert / timeout / transport failure      |
  | DeploymentError          | yes   | no verifier contract to call              |

Per-request errors (``fatal = False``) reject a single proof request; the
others abort the run.
"""


class ZKPreimageError(Exception):
    fatal = True


# ─── setup ───

class SetupError(ZKPreimageError):
    pass


class InvalidConstraint(SetupError):
    pass


# ─── artifacts ───

class ArtifactError(ZKPreimageError):
    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class ArtifactMissing(ArtifactError):
    pass


class ArtifactCorrupt(ArtifactError):
    pass


class ArtifactMismatch(ArtifactError):
    """Keys were not derived from the loaded constraint system."""


# ─── request level ───

class WitnessError(ZKPreimageError):
    fatal = False


class ValueOutOfRange(WitnessError):
    def __init__(self, name, message):
        super().__init__("{}: {}".format(name, message))
        self.name = name


class UnsatisfiedConstraint(ZKPreimageError):
    fatal = False

    def __init__(self, index, message=None):
        super().__init__(message or "constraint #{} is not satisfied".format(index))
        self.index = index


# ─── marshalling ───

class MarshalError(ZKPreimageError):
    pass


class EncodingOverflow(MarshalError):
    pass


class PublicInputArityMismatch(MarshalError):
    def __init__(self, expected, got):
        super().__init__(
            "expected {} public input(s), got {}".format(expected, got))
        self.expected = expected
        self.got = got


# ─── chain ───

class ChainCallError(ZKPreimageError):
    """The verifier call reverted, timed out or could not be decoded.

    Never the same thing as a ``False`` verification result.
    """
    fatal = False

    def __init__(self, message, reason=None):
        super().__init__(message)
        self.reason = reason


class DeploymentError(ZKPreimageError):
    pass
