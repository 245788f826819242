# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Utilities and adapters for the Table Loader.

This module contains helper functions such as the pandas integration.
"""
