# Copyright Red Hat
#
# tests/remote/__init__.py - Snapshot sync remote test package
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
