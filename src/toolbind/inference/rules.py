"""
Keyword rules for tool inference.

Each rule pairs a predicate over an element context with the purpose it
implies. Rules are evaluated in list order and the first match wins, so
more specific rules come first.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from toolbind.models import FormField, ImplementationType

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_WORD = re.compile(r"[a-z0-9]+")


def tokenize(*values: str | None) -> frozenset[str]:
    """Split ids, names and labels into lower-case word tokens."""
    tokens: set[str] = set()
    for value in values:
        if value:
            tokens.update(_WORD.findall(_CAMEL_BOUNDARY.sub(r"\1 \2", value).lower()))
    return frozenset(tokens)


@dataclass(frozen=True)
class FormContext:
    """What the form rules can see of a form."""

    form_id: str
    fields: Sequence[FormField]
    tokens: frozenset[str] = field(init=False)
    field_types: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "tokens",
            tokenize(self.form_id, *(f.name for f in self.fields), *(f.id for f in self.fields)),
        )
        object.__setattr__(self, "field_types", frozenset(f.type for f in self.fields))

    def mentions(self, *keywords: str) -> bool:
        return not self.tokens.isdisjoint(keywords)

    def has_field_type(self, *types: str) -> bool:
        return not self.field_types.isdisjoint(types)


@dataclass(frozen=True)
class ButtonContext:
    """What the button rules can see of a button."""

    button_id: str
    text: str | None = None
    action: str | None = None
    """Value of the data-action attribute, if any."""

    tokens: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tokenize(self.button_id, self.text, self.action))

    def mentions(self, *keywords: str) -> bool:
        return not self.tokens.isdisjoint(keywords)


@dataclass(frozen=True)
class DataContext:
    """What the data display rules can see of a data-bound element."""

    element_id: str
    tag_name: str
    attributes: dict[str, str]

    def has_attribute(self, *names: str) -> bool:
        return any(name in self.attributes for name in names)


@dataclass(frozen=True)
class PurposeInference:
    """Purpose and implementation family implied by a rule."""

    purpose: str
    implementation_type: ImplementationType
    description: str
    """Template with a ``{subject}`` slot."""

    suggested_implementation: str

    def describe(self, subject: str) -> str:
        return self.description.format(subject=subject)


C = TypeVar("C")


@dataclass(frozen=True)
class InferenceRule(Generic[C]):
    """A named (predicate, inference) pair."""

    name: str
    predicate: Callable[[C], bool]
    inference: PurposeInference

    def matches(self, context: C) -> bool:
        return self.predicate(context)


def first_match(rules: Sequence[InferenceRule[C]], context: C) -> InferenceRule[C] | None:
    for rule in rules:
        if rule.matches(context):
            return rule
    return None


FORM_RULES: list[InferenceRule[FormContext]] = [
    InferenceRule(
        name="registration",
        predicate=lambda ctx: ctx.has_field_type("password")
        and ctx.mentions("register", "registration", "signup", "join", "confirm"),
        inference=PurposeInference(
            purpose="Create a new user account",
            implementation_type=ImplementationType.DATABASE,
            description="Registers a user from the {subject} form",
            suggested_implementation="Validate the fields, hash the password and insert a user record",
        ),
    ),
    InferenceRule(
        name="authentication",
        predicate=lambda ctx: ctx.has_field_type("password")
        or ctx.mentions("login", "signin", "auth", "password", "credentials"),
        inference=PurposeInference(
            purpose="Authenticate a user",
            implementation_type=ImplementationType.DATABASE,
            description="Authenticates a user with the {subject} form",
            suggested_implementation="Look up the user, verify the password hash and return a session token",
        ),
    ),
    InferenceRule(
        name="calculation",
        predicate=lambda ctx: ctx.mentions(
            "amount", "price", "quantity", "qty", "total", "cost", "tax",
            "discount", "rate", "loan", "interest", "calc", "calculate",
        ),
        inference=PurposeInference(
            purpose="Calculate a result from numeric inputs",
            implementation_type=ImplementationType.CALCULATION,
            description="Computes a result from the {subject} form values",
            suggested_implementation="Parse the numeric inputs, apply the formula and return the result",
        ),
    ),
    InferenceRule(
        name="messaging",
        predicate=lambda ctx: ctx.mentions(
            "message", "subject", "contact", "feedback", "newsletter", "subscribe", "email",
        ),
        inference=PurposeInference(
            purpose="Send a message or notification",
            implementation_type=ImplementationType.EMAIL,
            description="Sends the {subject} form contents by email",
            suggested_implementation="Compose an email from the fields and hand it to the mail service",
        ),
    ),
    InferenceRule(
        name="file_upload",
        predicate=lambda ctx: ctx.has_field_type("file")
        or ctx.mentions("upload", "file", "attachment", "document"),
        inference=PurposeInference(
            purpose="Upload and store a file",
            implementation_type=ImplementationType.FILE_OPERATION,
            description="Stores files submitted through the {subject} form",
            suggested_implementation="Validate file type and size, then write it to storage and return its location",
        ),
    ),
    InferenceRule(
        name="search",
        predicate=lambda ctx: ctx.has_field_type("search")
        or ctx.mentions("search", "query", "q", "filter", "find", "lookup"),
        inference=PurposeInference(
            purpose="Search for matching records",
            implementation_type=ImplementationType.API_CALL,
            description="Runs a search with the {subject} form criteria",
            suggested_implementation="Forward the criteria to the search API and return the matches",
        ),
    ),
    InferenceRule(
        name="data_submission",
        predicate=lambda ctx: True,
        inference=PurposeInference(
            purpose="Save submitted form data",
            implementation_type=ImplementationType.DATABASE,
            description="Saves the {subject} form submission",
            suggested_implementation="Validate the fields and insert them as a new record",
        ),
    ),
]

BUTTON_RULES: list[InferenceRule[ButtonContext]] = [
    InferenceRule(
        name="delete",
        predicate=lambda ctx: ctx.mentions("delete", "remove", "clear", "trash", "destroy"),
        inference=PurposeInference(
            purpose="Delete records",
            implementation_type=ImplementationType.DATABASE,
            description="Deletes data when {subject} is clicked",
            suggested_implementation="Identify the target record from the context and delete it",
        ),
    ),
    InferenceRule(
        name="refresh",
        predicate=lambda ctx: ctx.mentions("refresh", "reload", "load", "fetch", "sync", "more"),
        inference=PurposeInference(
            purpose="Load fresh data",
            implementation_type=ImplementationType.API_CALL,
            description="Loads data when {subject} is clicked",
            suggested_implementation="Call the data API and return the records to display",
        ),
    ),
    InferenceRule(
        name="export",
        predicate=lambda ctx: ctx.mentions("export", "download", "print", "pdf", "csv"),
        inference=PurposeInference(
            purpose="Export data to a file",
            implementation_type=ImplementationType.FILE_OPERATION,
            description="Exports data when {subject} is clicked",
            suggested_implementation="Serialize the current data and return a download link",
        ),
    ),
    InferenceRule(
        name="notify",
        predicate=lambda ctx: ctx.mentions("send", "notify", "email", "share", "invite", "message"),
        inference=PurposeInference(
            purpose="Send a notification",
            implementation_type=ImplementationType.EMAIL,
            description="Sends a notification when {subject} is clicked",
            suggested_implementation="Build the message from the context and hand it to the mail service",
        ),
    ),
    InferenceRule(
        name="calculate",
        predicate=lambda ctx: ctx.mentions("calculate", "compute", "convert", "estimate", "total"),
        inference=PurposeInference(
            purpose="Calculate a value",
            implementation_type=ImplementationType.CALCULATION,
            description="Computes a value when {subject} is clicked",
            suggested_implementation="Read the inputs from the context and return the computed value",
        ),
    ),
    InferenceRule(
        name="save",
        predicate=lambda ctx: ctx.mentions(
            "save", "create", "add", "update", "submit", "confirm", "approve", "book", "order",
        ),
        inference=PurposeInference(
            purpose="Save changes",
            implementation_type=ImplementationType.DATABASE,
            description="Persists changes when {subject} is clicked",
            suggested_implementation="Write the data from the context to the store",
        ),
    ),
    InferenceRule(
        name="search",
        predicate=lambda ctx: ctx.mentions("search", "find", "lookup", "filter"),
        inference=PurposeInference(
            purpose="Search for matching records",
            implementation_type=ImplementationType.API_CALL,
            description="Runs a search when {subject} is clicked",
            suggested_implementation="Forward the criteria to the search API and return the matches",
        ),
    ),
]

DATA_RULES: list[InferenceRule[DataContext]] = [
    InferenceRule(
        name="remote_endpoint",
        predicate=lambda ctx: ctx.has_attribute("data-endpoint", "data-fetch"),
        inference=PurposeInference(
            purpose="Fetch data from a backend endpoint",
            implementation_type=ImplementationType.DATABASE,
            description="Fetches the data shown in {subject}",
            suggested_implementation="Query the declared endpoint or table and return the rows to render",
        ),
    ),
    InferenceRule(
        name="table",
        predicate=lambda ctx: ctx.tag_name == "table",
        inference=PurposeInference(
            purpose="Load table rows",
            implementation_type=ImplementationType.DATABASE,
            description="Loads the rows of table {subject}",
            suggested_implementation="Select the rows for the table, applying the filter and limit",
        ),
    ),
    InferenceRule(
        name="data_source",
        predicate=lambda ctx: True,
        inference=PurposeInference(
            purpose="Load display data",
            implementation_type=ImplementationType.DATABASE,
            description="Loads the data bound to {subject}",
            suggested_implementation="Read the named data source and return its records",
        ),
    ),
]
