import argparse
import os
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

DEFAULT_ENV_ARGS_PREFIX = "LBSAMPLE_"


class ArgumentParser(argparse.ArgumentParser):
    """
    Argument parser that takes the default of every --long-option from an environment variable.
    The variable name is the prefix followed by the option name in upper case, e.g. --vm-size -> LBSAMPLE_VM_SIZE.
    """

    def __init__(self, *args: Any, env_args_prefix: str = DEFAULT_ENV_ARGS_PREFIX, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.env_args_prefix = env_args_prefix

    def env_name(self, action: argparse.Action) -> Optional[str]:
        for option_string in action.option_strings:
            if option_string.startswith("--"):
                return self.env_args_prefix + option_string[2:].replace("-", "_").upper()
        return None

    def parse_known_args(  # type: ignore
        self, args: Optional[Sequence[str]] = None, namespace: Optional[argparse.Namespace] = None
    ) -> Tuple[argparse.Namespace, List[str]]:
        for action in self._actions:
            env_name = self.env_name(action)
            if env_name is None or action.default == argparse.SUPPRESS:
                continue
            new_default = os.environ.get(env_name)
            if new_default is not None:
                if callable(action.type):
                    type_goal: Union[type, Callable[[str], Any]] = action.type
                else:
                    type_goal = type(action.default)
                action.default = convert(new_default, type_goal)
        return super().parse_known_args(args=args, namespace=namespace)


def to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


# converters of environment values for the option types in use
Converters: Dict[type, Callable[[str], Any]] = {bool: to_bool, str: str, int: int, float: float}


def convert(value: str, type_goal: Union[type, Callable[[str], Any]]) -> Any:
    """
    Convert the string value of an environment variable to the type of the option.
    Values of unknown types or values that can not be converted are returned unchanged.
    """
    if isinstance(type_goal, type):
        converter = Converters.get(type_goal)
        if converter is None:
            return value
        try:
            return converter(value)
        except ValueError:
            return value
    return type_goal(value)
