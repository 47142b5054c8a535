"""Regime classification and the engines that evaluate each regime."""
