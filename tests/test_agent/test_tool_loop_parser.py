from benchmate.agent_tool_loop_mixin import AgentToolLoopMixin


def test_markers_detected():
    assert AgentToolLoopMixin._has_text_tool_markers("shell<arg_key>command</arg_key>")
    assert AgentToolLoopMixin._has_text_tool_markers("<tool_call>git_status</tool_call>")
    assert not AgentToolLoopMixin._has_text_tool_markers("Here is the answer.")
    assert not AgentToolLoopMixin._has_text_tool_markers("")


def test_extract_tagged_pairs():
    content = (
        "<tool_call>ha_call_service\n"
        "<arg_key>domain</arg_key><arg_value>light</arg_value>\n"
        "<arg_key>service</arg_key><arg_value>turn_on</arg_value>\n"
        "<arg_key>entity_id</arg_key><arg_value>light.desk</arg_value>\n"
        '<arg_key>data</arg_key><arg_value>{"brightness": 200}</arg_value>\n'
        "</tool_call>"
    )
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)

    assert call is not None
    assert call.name == "ha_call_service"
    assert call.input == {
        "domain": "light",
        "service": "turn_on",
        "entity_id": "light.desk",
        "data": {"brightness": 200},
    }
    assert call.id.startswith("text_")


def test_extract_name_and_pairs_on_one_line():
    call = AgentToolLoopMixin._extract_tool_call_from_text(
        "shell<arg_key>command</arg_key><arg_value>ls -la</arg_value></tool_call>"
    )
    assert call is not None
    assert call.name == "shell"
    assert call.input == {"command": "ls -la"}


def test_extract_skips_leading_prose_before_tool_call_tag():
    content = "Let me check.\n<tool_call>git_log\n<arg_key>count</arg_key><arg_value>3</arg_value>\n</tool_call>"
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.name == "git_log"
    assert call.input == {"count": "3"}


def test_extract_invalid_json_value_stays_literal():
    content = "write_file\n<arg_key>content</arg_key><arg_value>{not json}</arg_value>"
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.input == {"content": "{not json}"}


def test_extract_json_array_value():
    content = "tagger\n<arg_key>tags</arg_key><arg_value>[\"a\", \"b\"]</arg_value>"
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.input == {"tags": ["a", "b"]}


def test_extract_falls_back_to_loose_lines():
    content = "<tool_call>read_file\npath: /etc/hostname\nstart_line: 1\n</tool_call>"
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.name == "read_file"
    assert call.input == {"path": "/etc/hostname", "start_line": "1"}


def test_extract_rejects_prose_first_line():
    content = "I will now run the shell tool\n<arg_key>command</arg_key><arg_value>ls</arg_value>"
    assert AgentToolLoopMixin._extract_tool_call_from_text(content) is None


def test_extract_returns_single_call():
    content = (
        "<tool_call>shell\n<arg_key>command</arg_key><arg_value>ls</arg_value>\n</tool_call>\n"
        "<tool_call>shell\n<arg_key>command</arg_key><arg_value>pwd</arg_value>\n</tool_call>"
    )
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.name == "shell"
    assert call.input == {"command": "ls"}


def test_extract_name_on_line_after_bare_tag():
    content = "<tool_call>\ngit_status\n<arg_key>short</arg_key>\n<arg_value>true</arg_value>\n</tool_call>"
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.name == "git_status"
    assert call.input == {"short": "true"}


def test_extract_keeps_literal_value_whitespace():
    content = (
        "<tool_call>write_file\n"
        "<arg_key>path</arg_key><arg_value>main.py</arg_value>\n"
        "<arg_key>content</arg_key><arg_value>    x = 1\n</arg_value>\n"
        "</tool_call>"
    )
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.input == {"path": "main.py", "content": "    x = 1\n"}


def test_extract_json_value_with_surrounding_whitespace():
    content = "tagger\n<arg_key>tags</arg_key><arg_value>\n  [\"a\"]\n</arg_value>"
    call = AgentToolLoopMixin._extract_tool_call_from_text(content)
    assert call is not None
    assert call.input == {"tags": ["a"]}
