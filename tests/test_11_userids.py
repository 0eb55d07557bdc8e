# coding=utf-8
""" verify that User ID splitting aligns with expected behavior
"""

from typing import Dict, Optional, Tuple

import pytest

from pgpanatomy.anatomy import split_userid

uids: Dict[str, Tuple[Optional[str], Optional[str], Optional[str]]] = {
    'Alice Lovelace <alice@example.org>': ('Alice Lovelace', None, 'alice@example.org'),
    '<alice@example.org>': (None, None, 'alice@example.org'),
    ' <alice@example.org>': (None, None, 'alice@example.org'),
    'Alice Lovelace (j. random hacker) <alice@example.org>': ('Alice Lovelace', 'j. random hacker', 'alice@example.org'),
    'alice@example.org': (None, None, 'alice@example.org'),
    'Alice Lovelace': ('Alice Lovelace', None, None),
    'Carol (comment only)': ('Carol', 'comment only', None),
    'Eve () <eve@example.com>': ('Eve', None, 'eve@example.com'),
    'Frank <>': ('Frank', None, None),
    'Gina (a) (b) <gina@example.com>': ('Gina (a)', 'b', 'gina@example.com'),
    'Dave <dave@example.net': ('Dave <dave@example.net', None, None),
    'Ünïcödé Üser <unicode@example.com>': ('Ünïcödé Üser', None, 'unicode@example.com'),
    '': (None, None, None),
}


class TestUserIDs(object):
    @pytest.mark.parametrize('uid', uids.keys())
    def test_uid_name(self, uid: str):
        name, _, _ = split_userid(uid)
        assert name == uids[uid][0]

    @pytest.mark.parametrize('uid', uids.keys())
    def test_uid_comment(self, uid: str):
        _, comment, _ = split_userid(uid)
        assert comment == uids[uid][1]

    @pytest.mark.parametrize('uid', uids.keys())
    def test_uid_email(self, uid: str):
        _, _, email = split_userid(uid)
        assert email == uids[uid][2]
