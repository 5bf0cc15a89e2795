"""
Demo: Process two turns of narrative text against the example state,
persisting the state as JSON in between.
"""

from saltkit.examples import build_example_state
from saltkit.runtime import SaltRuntime
from saltkit.serialization import state_to_yaml


def print_report(turn, report):
    """Pretty-print a TurnReport."""
    print()
    print("=" * 70)
    print(f"TURN {turn}")
    print("=" * 70)
    print(f"  DSV block found:  {'YES' if report.dsv_found else 'NO'}")
    if report.bound:
        for name, value in report.bound.items():
            print(f"    {name} = {value!r}")
    print()

    for result in report.results:
        print(f"  > {result.name} {result.args} -> {result.value!r}")
    for failure in report.failures:
        print(f"  ! {failure.name} {failure.args} failed: {failure.error_type}: {failure.message}")
    print()


if __name__ == "__main__":
    runtime = SaltRuntime(state=build_example_state())

    first = runtime.run_turn(
        "The raven lands.\n"
        "> greet  Aria\n"
        "> heal  5\n"
        "> nope  this is just prose\n"
    )
    print_report(1, first)

    # The host persists plain data between turns
    saved = runtime.to_json()
    runtime = SaltRuntime.from_json(saved)

    second = runtime.run_turn(
        "!!!Bram::7::Oaken Staff::south road\n"
        "> stash  the silver key  under the gatepost\n"
        "> heal  not-a-number\n",
        var_names="name hp weapon location",
    )
    print_report(2, second)

    print(state_to_yaml(runtime.state))
