# zkvalida

`zkvalida` builds the trace tables ("chips") of a small virtual machine that a STARK
prover works with, together with the bus interactions that connect the chips and a
permutation (lookup) argument over them. All arithmetic is done in the BabyBear prime
field, `P = 15 * 2**27 + 1`. Field elements are plain Python integers and traces are
lists of rows, each row a list of integers.

## Modules

- `zkvalida.field`: `canonical`, `inverse` (raises `ZeroDivisionError` for zero),
  `batch_multiplicative_inverse` (zero entries stay zero), `powers` (an endless
  generator of `1, base, base**2, ...`), `next_power_of_two` and `pad_to_power_of_two`
  for flat row-major traces.
- `zkvalida.word`: `Word`, four cells stored big-endian. `from_u32`, `to_u32`,
  `from_byte`, `transform` and `reduce`, indexing and iteration, ordering, and operators
  on byte words: `+` wraps at 32 bits; `-` raises `OverflowError` on underflow; `*` raises
  `OverflowError` on overflow; `/` and `//` divide and raise `ZeroDivisionError` on zero;
  `<<` and `>>` raise `OverflowError` for shifts of 32 or more; `^`, `&` and `|` work
  cell by cell.
- `zkvalida.instruction`: `Opcode` (an `IntEnum` of the instruction set), `Operands`
  (`a` to `e`, `is_imm`, `imm32`, `from_i32`), `InstructionWord` (`flatten`) and
  `ProgramROM` (`get_instruction`, which raises `IndexError` outside the program).
- `zkvalida.chip`: `VirtualPairCol` (linear combinations of main and preprocessed
  columns), `BusArgument` (`local`, `global_`), `InteractionType`, `Interaction` and the
  abstract `Chip` base class, plus `generate_rlc_elements`, `generate_permutation_trace`
  and `eval_permutation_constraints`.
- `zkvalida.builder`: `DebugConstraintBuilder`, which raises `ConstraintViolation` on the
  first constraint that is not zero and counts the ones that hold in
  `constraint_count`; and `ConstraintFolder`, which collects constraint values and can
  `fold` them with powers of a challenge. Both offer `assert_zero`, `assert_one`,
  `assert_eq`, `assert_bool`, `when`, `when_ne`, `when_first_row`, `when_last_row`,
  `when_transition` and `is_transition_window` (window size 2 only).
- `zkvalida.check`: `check_constraints` evaluates a chip's own and permutation
  constraints on every row (wrapping round at the end) and returns its cumulative sum;
  `check_cumulative_sums` raises `ConstraintViolation` unless the sums of all
  permutation traces add up to zero, and returns each of them.

## Chips

- `zkvalida.memory.MemoryChip`: `read` and `write` words at addresses, optionally
  logging each access by clock cycle (`MemoryOperation`, `OperationKind`). Its trace is
  sorted by address, then clock, with dummy reads inserted to keep gaps within the
  table length and padded to a power of two.
- `zkvalida.native_field.NativeFieldChip`: `execute(opcode, b, c)` computes `ADD`, `SUB`
  or `MUL` of two words in the field, records a `NativeFieldOperation` and returns the
  result word.
- `zkvalida.output.OutputChip`: `write(clk, value)` records an output byte.
- `zkvalida.program.ProgramChip`: `set_program_rom` loads a `ProgramROM`, `read_word`
  counts reads of an instruction; the preprocessed trace holds `(pc, opcode,
  operands...)`.
- `zkvalida.range_checker.RangeCheckerChip`: `range_check` counts the cells of a word;
  the trace has one row per value below `max_value` (256 by default).

Every chip has `generate_trace`, its bus interactions and `eval`. The interactions ask
the `machine` argument for its buses, so pass an object with whichever of
`mem_bus()`, `range_bus()`, `general_bus()` and `program_bus()` the chip uses, each
returning a `BusArgument`.

## Example

```python
from zkvalida.chip import BusArgument
from zkvalida.memory import MemoryChip
from zkvalida.word import Word


class Machine:
    def mem_bus(self):
        return BusArgument.global_(0)


mem = MemoryChip()
mem.write(clk=1, address=4, value=Word.from_u32(7), log=True)
assert mem.read(clk=2, address=4, log=True).to_u32() == 7

trace = mem.generate_trace(Machine())
assert len(trace) == 2 and all(len(row) == 13 for row in trace)
```

## What the package does not do

There is no CPU chip and no machine that fetches and runs a program: instructions are
not executed by the package, and the caller drives the chips and supplies the machine
object. There is no prover, commitment scheme or verifier; the package stops at trace
generation and at checking constraints directly on the traces.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```