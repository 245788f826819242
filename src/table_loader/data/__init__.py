# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Data access layer: pagination across next-links and continuation headers."""
