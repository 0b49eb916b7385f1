# run.py
# Entry point. Config and wiring only; no logic lives here.
#
#   contract-deployer sepolia
#   contract-deployer localhost --plan reward-token
#
# Exit status is 0 when every step is complete, 1 on any fatal error. The
# checkpoint under networks/<network>/ is the resumption point.

import argparse
import os

from contract_deployer import display
from contract_deployer.artifacts import ArtifactStore
from contract_deployer.checkpoint import FileCheckpointStore
from contract_deployer.config import NETWORKS, DeploySettings, load_settings
from contract_deployer.errors import DeploymentError
from contract_deployer.network import Web3NetworkClient
from contract_deployer.orchestrator import Orchestrator, RunContext
from contract_deployer.plans import DEFAULT_PLAN, PLANS, get_plan
from contract_deployer.verify import EtherscanVerifier


def build_context(settings: DeploySettings) -> RunContext:
    artifacts = ArtifactStore(settings.artifacts_dir)
    return RunContext(
        network_name=settings.network.name,
        store=FileCheckpointStore(settings.state_dir, settings.network.name),
        network=Web3NetworkClient.from_settings(settings, artifacts),
        verifier=EtherscanVerifier.from_settings(settings, artifacts),
        explorer_url=settings.network.explorer_url,
        verify_delay=settings.verify_delay,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="contract-deployer",
        description="Deploy a contract plan to a network, resuming from its checkpoint.",
    )
    parser.add_argument(
        "network",
        nargs="?",
        default=os.getenv("DEPLOY_NETWORK", "localhost"),
        help=f"Target network ({', '.join(sorted(NETWORKS))}).",
    )
    parser.add_argument("--plan", default=DEFAULT_PLAN, choices=sorted(PLANS))
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.network)
        plan = get_plan(args.plan)
        context = build_context(settings)
        try:
            Orchestrator(plan, context).run()
        finally:
            if context.verifier is not None:
                context.verifier.close()
    except DeploymentError as exc:
        display.halt(exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
