"""
Subcarrier Interleaver for the Repetition Code
==============================================
Maps the repeated copies of every information symbol onto subcarriers and
regroups them at the receiver.

With interleaving switched on the N_c carriers are split into 1/R
consecutive blocks of N_c*R carriers and copy k of information symbol r is
placed on carrier r + k*N_c*R, i.e. the copies are spread as far apart as
the FFT size allows (maximum-distance pattern). Without interleaving the
copies occupy adjacent carriers.
"""

import numpy as np

from link_config import OFDMLinkConfig


def _frozen(a: np.ndarray) -> np.ndarray:
    a = np.ascontiguousarray(a)
    a.setflags(write=False)
    return a


class InterleaverMap:
    """
    Bijective coded-position -> subcarrier map, built once per configuration.

    Attributes
    ----------
    forward : (N_c,) int array, coded position i is sent on carrier forward[i]
    inverse : (N_c,) int array, carrier n carries coded position inverse[n]
    groups  : (N_c*R, 1/R) int array, row r lists the carriers holding the
              copies of information symbol r
    """

    def __init__(self, groups: np.ndarray):
        groups = np.asarray(groups, dtype=int)
        if groups.ndim != 2:
            raise ValueError("groups must be a 2-D (n_info, repeat) index matrix")
        forward = groups.ravel()
        n = forward.size
        if not np.array_equal(np.sort(forward), np.arange(n)):
            raise ValueError("groups do not form a permutation of the carriers")
        inverse = np.empty(n, dtype=int)
        inverse[forward] = np.arange(n)

        self.groups = _frozen(groups)
        self.forward = _frozen(forward)
        self.inverse = _frozen(inverse)

    @classmethod
    def from_config(cls, cfg: OFDMLinkConfig) -> "InterleaverMap":
        n_info = cfg.n_info_bits
        repeat = cfg.repeat_count
        if repeat == 1:
            return cls(np.arange(cfg.n_subcarriers).reshape(-1, 1))
        if cfg.interleaving:
            # row r: r, r + N_c*R, r + 2*N_c*R, ...
            groups = np.arange(n_info)[:, None] + n_info * np.arange(repeat)[None, :]
        else:
            groups = np.arange(cfg.n_subcarriers).reshape(n_info, repeat)
        return cls(groups)

    @property
    def n_subcarriers(self) -> int:
        return self.forward.size

    @property
    def n_info(self) -> int:
        return self.groups.shape[0]

    @property
    def repeat_count(self) -> int:
        return self.groups.shape[1]

    @property
    def is_identity(self) -> bool:
        return bool(np.array_equal(self.forward, np.arange(self.n_subcarriers)))

    def _check_length(self, data: np.ndarray):
        if data.shape != (self.n_subcarriers,):
            raise ValueError(f"expected a vector of {self.n_subcarriers} "
                             f"values, got shape {data.shape}")

    def scatter(self, coded: np.ndarray) -> np.ndarray:
        """Place coded symbols (copies adjacent) on their carriers."""
        coded = np.asarray(coded)
        self._check_length(coded)
        out = np.empty_like(coded)
        out[self.forward] = coded
        return out

    def deinterleave(self, per_carrier: np.ndarray) -> np.ndarray:
        """Undo scatter(): carrier order -> coded order."""
        per_carrier = np.asarray(per_carrier)
        self._check_length(per_carrier)
        return per_carrier[self.forward]

    def gather(self, per_carrier: np.ndarray) -> np.ndarray:
        """Collect the copies of each information symbol, shape (n_info, repeat)."""
        per_carrier = np.asarray(per_carrier)
        self._check_length(per_carrier)
        return per_carrier[self.groups]

    def copy_positions(self, info_index: int) -> np.ndarray:
        """Carriers holding the copies of information symbol `info_index`."""
        return self.groups[info_index]

    def min_copy_distance(self) -> int:
        """Smallest carrier spacing between two copies of the same symbol."""
        if self.repeat_count == 1:
            return self.n_subcarriers
        d = np.diff(np.sort(self.groups, axis=1), axis=1)
        return int(d.min())

    def __repr__(self):
        return (f"InterleaverMap(n_subcarriers={self.n_subcarriers}, "
                f"repeat={self.repeat_count}, identity={self.is_identity})")
