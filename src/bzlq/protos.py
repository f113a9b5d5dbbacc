"""Protobuf message classes for Bazel query output and the targets summary.

Bazel's ``--output=proto`` payloads are defined by ``build.proto`` (package
``blaze_query``) and ``analysis_v2.proto`` (package ``analysis``). Only the
fields this tool reads are declared here. Protobuf skips unknown fields while
parsing, so the subset decodes full Bazel output unchanged.

Text fields of the ``blaze_query`` subset are declared as ``bytes``. The wire
encoding is identical to ``string``, but Bazel does not guarantee UTF-8
labels, and a ``string`` declaration would make the parse itself fail on
them. ``bzlq.classifier`` decodes the bytes with replacement characters.

The ``targets`` dataset uses a purpose-defined ``bzlq`` schema.

Descriptors are assembled with ``descriptor_pb2`` into a private pool and
turned into message classes with ``message_factory.GetMessageClass``.
"""

from __future__ import annotations

from enum import IntEnum

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_Field = descriptor_pb2.FieldDescriptorProto

_BUILD_FILE = "bzlq/blaze_query.proto"
_ANALYSIS_FILE = "bzlq/analysis.proto"
_TARGETS_FILE = "bzlq/targets.proto"


class Discriminator(IntEnum):
    """``blaze_query.Target.Discriminator`` values."""

    RULE = 1
    SOURCE_FILE = 2
    GENERATED_FILE = 3
    PACKAGE_GROUP = 4
    ENVIRONMENT_GROUP = 5


def _field(
    name: str,
    number: int,
    field_type: int,
    *,
    repeated: bool = False,
    type_name: str | None = None,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _Field(
        name=name,
        number=number,
        type=field_type,
        label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
    )
    if type_name is not None:
        field.type_name = type_name
    return field


def _named_message(file: descriptor_pb2.FileDescriptorProto, name: str) -> None:
    """Add a message carrying only ``name = 1``."""
    message = file.message_type.add(name=name)
    message.field.append(_field("name", 1, _Field.TYPE_BYTES))


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file = descriptor_pb2.FileDescriptorProto(
        name=_BUILD_FILE, package="blaze_query", syntax="proto2"
    )

    attribute = file.message_type.add(name="Attribute")
    attribute.field.extend(
        [
            _field("name", 1, _Field.TYPE_BYTES),
            _field("int_value", 3, _Field.TYPE_INT32),
            _field("string_value", 5, _Field.TYPE_BYTES),
            _field("string_list_value", 6, _Field.TYPE_BYTES, repeated=True),
            _field("boolean_value", 14, _Field.TYPE_BOOL),
        ]
    )

    rule = file.message_type.add(name="Rule")
    rule.field.extend(
        [
            _field("name", 1, _Field.TYPE_BYTES),
            _field("rule_class", 2, _Field.TYPE_BYTES),
            _field("location", 3, _Field.TYPE_BYTES),
            _field(
                "attribute",
                4,
                _Field.TYPE_MESSAGE,
                repeated=True,
                type_name=".blaze_query.Attribute",
            ),
        ]
    )

    for name in ("SourceFile", "GeneratedFile", "PackageGroup", "EnvironmentGroup"):
        _named_message(file, name)

    target = file.message_type.add(name="Target")
    enum = target.enum_type.add(name="Discriminator")
    for member in Discriminator:
        enum.value.add(name=member.name, number=member.value)
    target.field.extend(
        [
            _field(
                "type",
                1,
                _Field.TYPE_ENUM,
                type_name=".blaze_query.Target.Discriminator",
            ),
            _field("rule", 2, _Field.TYPE_MESSAGE, type_name=".blaze_query.Rule"),
            _field("source_file", 3, _Field.TYPE_MESSAGE, type_name=".blaze_query.SourceFile"),
            _field(
                "generated_file", 4, _Field.TYPE_MESSAGE, type_name=".blaze_query.GeneratedFile"
            ),
            _field("package_group", 5, _Field.TYPE_MESSAGE, type_name=".blaze_query.PackageGroup"),
            _field(
                "environment_group",
                6,
                _Field.TYPE_MESSAGE,
                type_name=".blaze_query.EnvironmentGroup",
            ),
        ]
    )

    query_result = file.message_type.add(name="QueryResult")
    query_result.field.append(
        _field("target", 1, _Field.TYPE_MESSAGE, repeated=True, type_name=".blaze_query.Target")
    )
    return file


def _analysis_file() -> descriptor_pb2.FileDescriptorProto:
    file = descriptor_pb2.FileDescriptorProto(
        name=_ANALYSIS_FILE, package="analysis", syntax="proto3", dependency=[_BUILD_FILE]
    )

    configured = file.message_type.add(name="ConfiguredTarget")
    configured.field.extend(
        [
            _field("target", 1, _Field.TYPE_MESSAGE, type_name=".blaze_query.Target"),
            _field("configuration_id", 3, _Field.TYPE_UINT32),
        ]
    )

    cquery_result = file.message_type.add(name="CqueryResult")
    cquery_result.field.append(
        _field(
            "results",
            1,
            _Field.TYPE_MESSAGE,
            repeated=True,
            type_name=".analysis.ConfiguredTarget",
        )
    )
    return file


def _targets_file() -> descriptor_pb2.FileDescriptorProto:
    file = descriptor_pb2.FileDescriptorProto(
        name=_TARGETS_FILE, package="bzlq", syntax="proto3"
    )

    detail = file.message_type.add(name="TargetDetail")
    detail.field.extend(
        [
            _field("label", 1, _Field.TYPE_STRING),
            _field("description", 2, _Field.TYPE_STRING),
            _field("is_executable", 3, _Field.TYPE_BOOL),
            _field("is_test", 4, _Field.TYPE_BOOL),
        ]
    )

    details = file.message_type.add(name="TargetDetails")
    details.field.append(
        _field(
            "target_detail",
            1,
            _Field.TYPE_MESSAGE,
            repeated=True,
            type_name=".bzlq.TargetDetail",
        )
    )
    return file


_pool = descriptor_pool.DescriptorPool()
for _file in (_build_file(), _analysis_file(), _targets_file()):
    _pool.AddSerializedFile(_file.SerializeToString())


def _message_class(full_name: str) -> type:
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(full_name))


Attribute = _message_class("blaze_query.Attribute")
Rule = _message_class("blaze_query.Rule")
SourceFile = _message_class("blaze_query.SourceFile")
GeneratedFile = _message_class("blaze_query.GeneratedFile")
PackageGroup = _message_class("blaze_query.PackageGroup")
EnvironmentGroup = _message_class("blaze_query.EnvironmentGroup")
Target = _message_class("blaze_query.Target")
QueryResult = _message_class("blaze_query.QueryResult")

ConfiguredTarget = _message_class("analysis.ConfiguredTarget")
CqueryResult = _message_class("analysis.CqueryResult")

TargetDetailMessage = _message_class("bzlq.TargetDetail")
TargetDetailsMessage = _message_class("bzlq.TargetDetails")
