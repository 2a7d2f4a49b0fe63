"""Tests for :mod:`stimlint.validators.seeds`."""

from __future__ import annotations

import pytest

from stimlint.findings import FindingKind
from stimlint.validators.seeds import (
    Attachment,
    find_attachments,
    find_model_creations,
    is_image_attachment,
)

POST_MODEL = """
class Post < ApplicationRecord
  has_one_attached :cover_image
  has_many_attached :gallery_photos
  has_one_attached :report_pdf

  class Draft < ApplicationRecord
    has_one_attached :thumbnail
  end
end
"""

SEEDS = """
require "open-uri"

Post.create!(
  title: "Hello",
  cover_image: { io: URI.open("https://picsum.photos/800"), filename: "a.jpg" }
)
Post.create(title: "Bare")
User.create!(name: "Ann")
"""


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("avatar", True),
        ("cover_image", True),
        ("gallery_photos", True),
        ("report_pdf", False),
        ("image_file", False),
        ("attachment", False),
    ],
)
def test_is_image_attachment(name, expected) -> None:
    assert is_image_attachment(name) is expected


def test_find_attachments_keeps_nested_classes_apart(ruby_parser) -> None:
    tree = ruby_parser.parse(POST_MODEL)

    assert find_attachments(tree) == {
        "Post": [
            Attachment("cover_image", "one"),
            Attachment("gallery_photos", "many"),
            Attachment("report_pdf", "one"),
        ],
        "Draft": [Attachment("thumbnail", "one")],
    }


def test_find_model_creations_collects_top_level_keys(ruby_parser) -> None:
    tree = ruby_parser.parse(SEEDS.lstrip("\n"))

    creations = list(find_model_creations(tree))

    assert [(c.model, c.line) for c in creations] == [
        ("Post", 3),
        ("Post", 7),
        ("User", 8),
    ]
    assert creations[0].params == {"title", "cover_image"}
    assert creations[1].params == {"title"}


def test_missing_image_attachments_are_reported(
    rails_project, ruby_parser
) -> None:
    rails_project.write("app/models/post.rb", POST_MODEL)
    rails_project.write(
        "app/models/user.rb", "class User < ApplicationRecord\nend\n"
    )
    rails_project.write("db/seeds.rb", SEEDS)

    report = rails_project.run("seeds")

    assert [(f.line, f.subject) for f in report.findings] == [
        (3, "Post#gallery_photos"),
        (7, "Post#cover_image"),
        (7, "Post#gallery_photos"),
    ]
    assert all(
        f.kind is FindingKind.SEED_MISSING_ATTACHMENT for f in report.findings
    )
    many = report.findings[0]
    assert many.file == "db/seeds.rb"
    assert many.details["type"] == "many"
    assert many.suggestion.endswith(
        "gallery_photos: [{ io: URI.open('https://picsum.photos/800'), "
        "filename: 'photo.jpg' }]"
    )


def test_missing_seeds_file_is_skipped(rails_project, ruby_parser) -> None:
    rails_project.write("app/models/post.rb", POST_MODEL)

    assert rails_project.run("seeds").passed


def test_unparsable_seeds_file_is_skipped(rails_project, ruby_parser) -> None:
    rails_project.write("app/models/post.rb", POST_MODEL)
    rails_project.write("db/seeds.rb", "Post.create!(title: \n")

    assert rails_project.run("seeds").passed
