"""Tests for request validation and normalization."""

import pytest
from pydantic import ValidationError

from word_api.schemas import (
    CreatePostRequest,
    CreateUserRequest,
    CreateVocabularyRequest,
    UpdatePostRequest,
    UpdateUserRequest,
    normalize_email,
)


class TestEmail:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("John@Example.com", "john@example.com"),
            ("  a.b+tag@mail.example.org ", "a.b+tag@mail.example.org"),
        ],
    )
    def test_normalized(self, raw, expected):
        assert normalize_email(raw) == expected

    @pytest.mark.parametrize(
        "raw", ["", "plain", "@example.com", "john@", "john@localhost", "jo hn@example.com"]
    )
    def test_rejected(self, raw):
        with pytest.raises(ValueError):
            normalize_email(raw)


class TestUserRequests:
    def test_create(self):
        req = CreateUserRequest(name="  Ann ", email="ANN@Example.com")
        assert (req.name, req.email) == ("Ann", "ann@example.com")

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    def test_bad_name(self, name):
        with pytest.raises(ValidationError):
            CreateUserRequest(name=name, email="a@example.com")

    def test_extra_field_rejected(self):
        with pytest.raises(ValidationError):
            CreateUserRequest(name="A", email="a@example.com", admin=True)

    def test_update_requires_a_field(self):
        with pytest.raises(ValidationError, match="At least one field"):
            UpdateUserRequest()

    def test_update_null_name_rejected(self):
        with pytest.raises(ValidationError):
            UpdateUserRequest(name=None)

    def test_update_changes_only_sent_fields(self):
        assert UpdateUserRequest(email="X@Y.io").changes() == {"email": "x@y.io"}


class TestPostRequests:
    def test_user_id_canonicalized(self):
        req = CreatePostRequest(
            user_id="A0EEBC99-9C0B-4EF8-BB6D-6BB9BD380A11", title="T"
        )
        assert req.user_id == "a0eebc99-9c0b-4ef8-bb6d-6bb9bd380a11"

    def test_bad_user_id(self):
        with pytest.raises(ValidationError, match="valid UUID"):
            CreatePostRequest(user_id="nope", title="T")

    def test_title_too_long(self):
        with pytest.raises(ValidationError):
            CreatePostRequest(user_id="a0eebc99-9c0b-4ef8-bb6d-6bb9bd380a11", title="x" * 201)

    def test_update_clear_content(self):
        assert UpdatePostRequest(content=None).changes() == {"content": None}

    def test_update_blank_content_clears(self):
        assert UpdatePostRequest(content="  ").changes() == {"content": None}

    def test_update_null_title_rejected(self):
        with pytest.raises(ValidationError):
            UpdatePostRequest(title=None)

    def test_update_requires_a_field(self):
        with pytest.raises(ValidationError):
            UpdatePostRequest()


class TestVocabularyRequests:
    def test_blank_examples_become_none(self):
        req = CreateVocabularyRequest(en_word="cat", ja_word="猫", en_example=" ", ja_example=None)
        assert req.en_example is None and req.ja_example is None

    def test_word_required(self):
        with pytest.raises(ValidationError):
            CreateVocabularyRequest(en_word="", ja_word="猫")
