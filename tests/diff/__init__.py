# Copyright Red Hat
#
# tests/diff/__init__.py - Snapshot sync diff test package
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
