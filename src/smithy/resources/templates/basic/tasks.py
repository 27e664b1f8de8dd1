"""Project tasks, loaded through the ``plugins`` list in smithy.yaml."""


def _hello(arguments, env):
    print(f"Hello, {arguments['name']}!")


def register(dsl, context):
    dsl.task("hello", "Prints a greeting", _hello).add_optional_param("name", "Who to greet", "world")
