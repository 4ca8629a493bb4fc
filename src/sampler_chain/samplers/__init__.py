"""Sampler stages for sampler-chain.

Importing this package registers every built-in sampler with
:class:`SamplerRegistry`, so chains can be built by stage name.
"""

from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.flat_bias import SampleFlatBias
from sampler_chain.samplers.freq_presence import SampleFreqPresence
from sampler_chain.samplers.greedy import SampleGreedy
from sampler_chain.samplers.locally_typical import SampleLocallyTypical
from sampler_chain.samplers.min_p import SampleMinP
from sampler_chain.samplers.mirostat import SampleMirostat1, SampleMirostat2
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.rand_distrib import SampleRandDistrib
from sampler_chain.samplers.registry import SamplerRegistry
from sampler_chain.samplers.repetition import SampleRepetition
from sampler_chain.samplers.sequence_repetition import SampleSeqRepetition
from sampler_chain.samplers.tail_free import SampleTailFree
from sampler_chain.samplers.temperature import SampleTemperature
from sampler_chain.samplers.top_a import SampleTopA
from sampler_chain.samplers.top_k import SampleTopK
from sampler_chain.samplers.top_p import SampleTopP

__all__ = [
    "SampleFlatBias",
    "SampleFreqPresence",
    "SampleGreedy",
    "SampleLocallyTypical",
    "SampleMinP",
    "SampleMirostat1",
    "SampleMirostat2",
    "SampleRandDistrib",
    "SampleRepetition",
    "SampleSeqRepetition",
    "SampleTailFree",
    "SampleTemperature",
    "SampleTopA",
    "SampleTopK",
    "SampleTopP",
    "Sampler",
    "SamplerOption",
    "SamplerRegistry",
]
