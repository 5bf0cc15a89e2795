"""
Example state builder for SALT.

Builds a small adventure state with variables bound from a DSV block and
one command of each kind:
    - greet: body captured from a Python function
    - heal: body given as source text, reaching the "vars" global
    - stash: native callback addressed by key
"""
from saltkit.commands import native_callback, register_command, register_native_command
from saltkit.dsv import bind_variables, extract_block, split_variable
from saltkit.model import RuntimeState

EXAMPLE_SCENARIO = """You wake at the edge of the Ashwood.
!!!Aria::12::Sword of Dawn::north gate
A raven watches from the gatepost.
"""

HEAL_SOURCE = '''
def heal(amount):
    hp = int(vars.get("hp") or 0) + int(amount)
    vars["hp"] = str(hp)
    return hp
'''


def greet(name):
    return "hi " + name


@native_callback("examples.stash")
def stash(item, place):
    return f"{item} hidden {place}"


def build_example_state(scenario: str = EXAMPLE_SCENARIO) -> RuntimeState:
    state = RuntimeState()

    extract_block(scenario, state)
    bind_variables("name hp weapon location", state)
    split_variable("location", " ", "direction landmark", state)

    register_command("greet", "name", greet, state)
    register_command("heal", "amount", HEAL_SOURCE, state)
    register_native_command("stash", "item place", "examples.stash", state)

    return state
