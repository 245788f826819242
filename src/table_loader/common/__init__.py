# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Common constants shared across the Table Loader package."""
