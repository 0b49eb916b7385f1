# errors.py
# Exception taxonomy for the deployment orchestrator.
#
# Everything fatal derives from DeploymentError so the entry point can halt
# with one except clause. Verification problems are never raised; they are
# returned as VerificationOutcome values (see verify.py).


class DeploymentError(Exception):
    """Base class for every fatal deployment error."""


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


class ConfigError(DeploymentError):
    """Raised when the network or its credentials cannot be resolved."""


class PlanError(DeploymentError):
    """Raised when a deployment plan is unknown or structurally invalid."""


class ArtifactNotFound(DeploymentError):
    """Raised when a compiled contract artifact is missing from the build output."""


# ---------------------------------------------------------------------------
# Checkpoint
# ---------------------------------------------------------------------------


class CheckpointCorrupted(DeploymentError):
    """Raised when address.json or progress.json cannot be parsed."""


class CheckpointLocked(DeploymentError):
    """Raised when another run already holds the lock for this network."""


class PersistenceFailed(DeploymentError):
    """
    Raised when the checkpoint cannot be written.

    The on-chain effect of the current step may already exist without a
    durable record. Inspect the chain before re-running.
    """


# ---------------------------------------------------------------------------
# Step execution
# ---------------------------------------------------------------------------


class UnresolvedDependency(DeploymentError):
    """Raised when a step needs an address that is not in the address table."""

    def __init__(self, tag: str, missing: list[str]) -> None:
        self.tag = tag
        self.missing = missing
        super().__init__(
            f"Step '{tag}' requires addresses for {', '.join(missing)}, "
            "but they are not recorded."
        )


class DeploymentFailed(DeploymentError):
    """Raised when a contract-creation transaction reverts, times out, or errors."""


class CallFailed(DeploymentError):
    """Raised when a wiring transaction reverts, times out, or errors."""


# ---------------------------------------------------------------------------
# Verification (never fatal)
# ---------------------------------------------------------------------------


class VerificationFailed(Exception):
    """
    Raised inside the verifier when the explorer rejects or never confirms a
    submission. Converted to a failed VerificationOutcome before it reaches
    the orchestrator, so it does not derive from DeploymentError.
    """
