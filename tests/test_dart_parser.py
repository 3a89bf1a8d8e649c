"""
Tests for the Dart structure parser.
"""

from hypothesis import given, strategies as st
from block_editor_core.dart_parser import DartStructureParser, parse_structure
from block_editor_core.declarations import (
    DeclarationKind, MethodDeclaration, VariableDeclaration
)


PERSON_SOURCE = '''
class Person {
  String name = "Alice";
  int age = 30;

  void greet() {
    print('hello');
  }
}
'''


class TestClassDetection:
    """Test cases for class boundaries."""

    def test_single_class(self):
        """Test a class with two variables and one method."""
        structure = parse_structure(PERSON_SOURCE)

        assert len(structure) == 1
        person = structure[0]
        assert person.name == 'Person'
        assert [v.name for v in person.variables] == ['name', 'age']
        assert [m.name for m in person.methods] == ['greet']

    def test_empty_input(self):
        """Test empty text yields no records."""
        assert parse_structure('') == []
        assert parse_structure('\n   \n') == []

    def test_no_class_yields_nothing(self):
        """Test top-level declarations outside a class are ignored."""
        assert parse_structure('int x = 5;\nvoid main() {}') == []

    def test_empty_class(self):
        """Test a class without members is still reported."""
        structure = parse_structure('class Empty {\n}')
        assert len(structure) == 1
        assert structure[0].members == []

    def test_multiple_classes_in_source_order(self):
        """Test classes are returned in the order they appear."""
        code = 'class A {\n  var x = 1;\n}\nclass B {\n  void run() {}\n}'
        structure = parse_structure(code)
        assert [c.name for c in structure] == ['A', 'B']
        assert [v.name for v in structure[0].variables] == ['x']
        assert [m.name for m in structure[1].methods] == ['run']

    def test_members_after_class_close_are_ignored(self):
        """Test declarations after the closing brace are not attached."""
        code = 'class A {\n  var x = 1;\n}\nvar y = 2;'
        structure = parse_structure(code)
        assert [v.name for v in structure[0].variables] == ['x']

    def test_unclosed_class_is_returned(self):
        """Test a class that never closes keeps its members."""
        structure = parse_structure('class Open {\n  var x = 1;')
        assert structure[0].name == 'Open'
        assert len(structure[0].variables) == 1

    def test_nested_braces_do_not_close_class(self):
        """Test closing a method body does not leave the class."""
        code = 'class A {\n  void f() {\n    if (x) {\n    }\n  }\n  var after = 1;\n}'
        structure = parse_structure(code)
        assert [v.name for v in structure[0].variables] == ['after']

    def test_parser_is_reusable(self):
        """Test state is reset between parse passes."""
        parser = DartStructureParser()
        parser.parse('class Open {\n  var x = 1;')
        structure = parser.parse('var y = 2;')
        assert structure == []


class TestMemberClassification:
    """Test cases for method and variable lines."""

    def test_method_signature(self):
        """Test return type, name and parameters are captured."""
        structure = parse_structure('class A {\n  String describe(int level, bool loud) {\n  }\n}')
        method = structure[0].methods[0]
        assert method == MethodDeclaration('String', 'describe', 'int level, bool loud')
        assert method.kind == DeclarationKind.METHOD

    def test_method_parameters_are_trimmed(self):
        """Test whitespace inside the parameter list is trimmed."""
        structure = parse_structure('class A {\n  void f(  int a  ) {}\n}')
        assert structure[0].methods[0].parameters == 'int a'

    def test_variable_declaration(self):
        """Test type, name and value are captured without the semicolon."""
        structure = parse_structure('class A {\n  final count = 42;\n}')
        variable = structure[0].variables[0]
        assert variable == VariableDeclaration('final', 'count', '42')
        assert variable.kind == DeclarationKind.VARIABLE

    def test_variable_without_semicolon(self):
        """Test the trailing semicolon is optional."""
        structure = parse_structure('class A {\n  var label = "x"\n}')
        assert structure[0].variables[0].value == '"x"'

    def test_list_variable(self):
        """Test list initializers keep their raw text."""
        structure = parse_structure('class A {\n  List items = [1, 2, 3];\n}')
        assert structure[0].variables[0].value == '[1, 2, 3]'

    def test_method_takes_precedence_over_variable(self):
        """Test a line matching both families is read as a method."""
        structure = parse_structure("class A {\n  String greet(String who) => 'hi' + who;\n}")
        assert [m.name for m in structure[0].methods] == ['greet']
        assert structure[0].variables == []

    def test_declaration_without_initializer_is_skipped(self):
        """Test variables need an initializer."""
        structure = parse_structure('class A {\n  int count;\n}')
        assert structure[0].members == []

    def test_unrecognized_lines_are_skipped(self):
        """Test statements that are neither methods nor variables are dropped."""
        structure = parse_structure("class A {\n  print('x');\n  return;\n}")
        assert structure[0].members == []

    def test_member_order_is_preserved(self):
        """Test members keep the order they were found in."""
        code = 'class A {\n  void first() {}\n  var second = 2;\n  int third() {}\n}'
        members = parse_structure(code)[0].members
        assert [m.name for m in members] == ['first', 'second', 'third']


# Property-based tests
@given(st.text())
def test_parse_never_raises_property(text):
    """Property test: any text parses to a list of class records."""
    structure = parse_structure(text)
    assert isinstance(structure, list)


@given(st.from_regex(r'[A-Z][A-Za-z0-9]{0,12}', fullmatch=True),
       st.lists(st.from_regex(r'[a-z][a-zA-Z0-9]{0,8}', fullmatch=True), max_size=5, unique=True))
def test_class_members_property(class_name, variable_names):
    """Property test: every initialized variable in a class is recovered in order."""
    lines = [f'class {class_name} {{']
    lines.extend(f'  var {name} = 1;' for name in variable_names)
    lines.append('}')

    structure = parse_structure('\n'.join(lines))

    assert [c.name for c in structure] == [class_name]
    assert [v.name for v in structure[0].variables] == variable_names
