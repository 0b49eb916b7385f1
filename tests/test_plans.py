import pytest
from pydantic import ValidationError

from contract_deployer.errors import PlanError
from contract_deployer.models import Step, StepKind, VerificationOutcome
from contract_deployer.plans import PLANS, build_plan, deploy, get_plan, ref, wire

# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------


def test_deploy_step_defaults_contract_to_tag():
    step = deploy("AdminControl")
    assert step.kind is StepKind.DEPLOY
    assert step.contract == "AdminControl"
    assert step.dependencies == ()


def test_dependencies_list_target_first_without_duplicates():
    step = wire("Link", "A", "link", ref("B"), ref("A"), ref("B"), 7)
    assert step.dependencies == ("A", "B")


def test_resolve_args_substitutes_only_references():
    step = deploy("Token", "Reward", ref("Admin"), 18, True)
    assert step.resolve_args({"Admin": "0xabc"}) == ["Reward", "0xabc", 18, True]


def test_array_argument_references_are_collected_and_resolved():
    step = deploy("B", [ref("A")])
    assert step.args == ((ref("A"),),)
    assert step.dependencies == ("A",)
    assert step.resolve_args({"A": "0xabc"}) == [["0xabc"]]


def test_nested_array_arguments_mix_references_and_literals():
    step = wire("W", "A", "grant", [ref("B"), "0x01"], [[1, 2], [ref("C")]])
    assert step.dependencies == ("A", "B", "C")
    assert step.resolve_args({"A": "0xa", "B": "0xb", "C": "0xc"}) == [["0xb", "0x01"], [[1, 2], ["0xc"]]]


def test_plan_with_array_reference_is_ordered_by_inner_references():
    plan = build_plan("p", deploy("A"), deploy("B", [ref("A")]))
    assert plan.steps[1].dependencies == ("A",)

    with pytest.raises(PlanError, match="not a deploy step declared before it"):
        build_plan("p", deploy("B", [ref("A")]), deploy("A"))


def test_unsupported_argument_is_a_plan_error():
    with pytest.raises(PlanError, match="Invalid step 'B'"):
        deploy("B", {"not": "an argument"})

    with pytest.raises(PlanError, match="Invalid step 'W'"):
        wire("W", "A", "setRate", 1.5)


def test_deploy_step_requires_contract():
    with pytest.raises(ValidationError, match="needs a contract"):
        Step(tag="A", kind=StepKind.DEPLOY)


def test_wire_step_requires_target_and_method():
    with pytest.raises(ValidationError, match="target and method"):
        Step(tag="W", kind=StepKind.WIRE, target="A")


def test_steps_are_immutable():
    step = deploy("A")
    with pytest.raises(ValidationError):
        step.tag = "B"


# ---------------------------------------------------------------------------
# Plan validation
# ---------------------------------------------------------------------------


def test_duplicate_tags_are_rejected():
    with pytest.raises(PlanError, match="Duplicate step tag"):
        build_plan("dup", deploy("A"), deploy("A"))


def test_forward_reference_is_rejected():
    with pytest.raises(PlanError, match="not a deploy step declared before it"):
        build_plan("forward", deploy("B", ref("A")), deploy("A"))


def test_reference_to_wire_step_is_rejected():
    with pytest.raises(PlanError):
        build_plan("wired", deploy("A"), wire("W", "A", "init"), deploy("B", ref("W")))


def test_empty_plan_is_rejected():
    with pytest.raises(PlanError):
        build_plan("empty")


def test_wire_step_uses_target_contract_abi():
    plan = build_plan("p", deploy("Token", contract="RewardToken"), wire("W", "Token", "setMinter"))
    assert plan.contract_for(plan.steps[1]) == "RewardToken"
    assert plan.contract_for(plan.steps[0]) == "RewardToken"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_fe_learning_plan_order_and_arguments():
    plan = get_plan("fe-learning")
    assert plan.tags == ["AdminControl", "TrainerManagement", "FEBlockchainLearning"]
    assert plan.steps[1].dependencies == ("AdminControl",)
    assert plan.steps[2].args == (ref("TrainerManagement"), ref("AdminControl"))


def test_reward_token_plan_wires_bridge_roles():
    plan = get_plan("reward-token")
    wiring = [step for step in plan.steps if step.kind is StepKind.WIRE]
    assert [step.method for step in wiring] == ["setMinter", "setBurner"]
    assert all(step.target == "RewardToken" for step in wiring)
    assert all(step.dependencies == ("RewardToken", "TokenBridge") for step in wiring)


def test_every_registered_plan_is_keyed_by_name():
    assert all(name == plan.name for name, plan in PLANS.items())


def test_unknown_plan_is_rejected():
    with pytest.raises(PlanError, match="Known plans"):
        get_plan("nope")


def test_verification_outcome_ok():
    assert VerificationOutcome.verified().ok
    assert VerificationOutcome.already_verified().ok
    assert not VerificationOutcome.failed("nope").ok
