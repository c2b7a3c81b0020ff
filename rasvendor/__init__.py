"""Decoders for HiSilicon, JaguarMicro and Yitian vendor RAS error sections."""

__version__ = "0.1.0"