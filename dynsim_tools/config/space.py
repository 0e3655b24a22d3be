"""
# Parameter Space Configuration

This module provides configuration classes for defining the marginal
distributions model parameters are sampled from.

## Classes

- `SampleSpace`: Container for a distribution factory and its parameters
- `SpaceConfig`: Configuration for multiple parameter sampling spaces

## Example Usage

```python
from dynsim_tools.config.space import SpaceConfig

space_config = SpaceConfig.from_dict({
    'r': {'mean': 0.05, 'stddev': 0.01},
    'K': ['normal', [200, 50]],
    'P0': ['uniform', [5, 15]]
})

# Frozen scipy distributions, keyed by parameter name
search_space = space_config.get_search_space()
```
"""

from dynsim_tools.errors import ConfigurationError
from dynsim_tools.utils.distributions import DISTRIBUTIONS
from typing import Callable

from dataclasses import dataclass


@dataclass
class SampleSpace:
    """
    Container for a distribution factory and its parameters.

    Attributes:
        distribution (Callable): Factory returning a frozen scipy distribution.
        parameters (tuple[float]): Arguments of the factory.
        name (str): Configuration name of the distribution.
    """
    distribution: Callable
    parameters: tuple[float]
    name: str = "normal"

    def unpack(self):
        """
        Unpack the distribution and parameters.

        Returns:
            tuple: (distribution_factory, parameters_tuple) ready for instantiation.
        """
        return (self.distribution, self.parameters)

    def to_list(self) -> list:
        """Configuration form `[name, [parameters...]]`."""
        return [self.name, list(self.parameters)]


class SpaceConfig(dict[str, SampleSpace]):
    """
    Configuration for multiple parameter sampling spaces.

    Inherits from dict[str, SampleSpace] where:
    - Keys are parameter names, in sampling column order
    - Values are SampleSpace instances
    """

    @classmethod
    def from_dict(cls, data: dict, mapping: dict[str, Callable] = None):
        """
        Create a SpaceConfig from configuration data.

        Args:
            data (dict): Keys are parameter names. Values are either
                `{'mean': m, 'stddev': s}` (a normal distribution) or
                `[distribution_name, [parameters...]]`.
            mapping (dict[str, Callable], optional): Distribution name to
                factory. Defaults to DISTRIBUTIONS.

        Returns:
            SpaceConfig: Configured instance with parameter spaces.

        Raises:
            ConfigurationError: If a distribution type is unknown or a
                standard deviation is not positive.
        """
        if mapping is None:
            mapping = DISTRIBUTIONS

        space_config = {}
        for k, v in data.items():
            if isinstance(v, dict):
                dist_type = v.get("dist", "normal").lower()
                try:
                    params = [v["mean"], v["stddev"]]
                except KeyError as e:
                    raise ConfigurationError(
                        f"parameters.{k}", f"missing {e.args[0]!r}"
                    ) from e
            else:
                dist_type = v[0].lower()
                params = v[1]
            if dist_type not in mapping:
                raise ConfigurationError(f"parameters.{k}", f"unknown distribution type: {dist_type}")
            if dist_type in ("normal", "truncnorm") and params[1] <= 0:
                raise ConfigurationError(f"parameters.{k}", f"stddev must be > 0, got {params[1]}")
            space_config[k] = SampleSpace(
                distribution=mapping[dist_type],
                parameters=tuple(float(p) for p in params),
                name=dist_type
            )
        return cls(space_config)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.keys())

    def to_dict(self) -> dict:
        return {name: space.to_list() for name, space in self.items()}

    def get_search_space(self):
        """
        Instantiate the frozen distribution of every parameter.

        Returns:
            dict[str, scipy.stats.rv_frozen]: Parameter name to distribution.
        """
        space = {}
        for param_name, samplespace in self.items():
            sampler, parameters = samplespace.unpack()
            space[param_name] = sampler(*parameters)

        return space
