# minikern

Building blocks of a small x86 teaching kernel, modelled in plain Python so they can be
exercised, inspected and tested without an emulator. The package has no third-party
dependencies.

## What is inside

| Module | Contents |
| --- | --- |
| `minikern.kformat` | The kernel's `printf` engine: `snprintf(sink, maxlen, fmt, *args)`, `sprintf(fmt, *args, maxlen=1000)`, plus `streq` and `isdigit` |
| `minikern.debug` | `Console` with `printf`, `panic`, `check`, `ensure`, `missing` and `shutdown`; named `DebugChannel`s; the `KernelPanic` and `ShutdownRequested` exceptions |
| `minikern.rng` | `Random`, a multiply-with-carry generator of 32-bit values (`next()` or iteration) |
| `minikern.physmem` | Frame arithmetic (`offset`, `ppn`, `framedown`, `frameup`) and `FrameAllocator`; `OutOfFrames` |
| `minikern.idt` | `InterruptTable`, building interrupt and trap gate descriptors |
| `minikern.display` | `Framebuffer` for a 320x200 8-bit display, `convert_to_6_bit`, bitmap text drawing, `Window` |
| `minikern.block_io` | `BlockIO` base class with byte-level reads over blocks, and the in-memory `MemoryDisk` |
| `minikern.ext2` | Read-only ext2: `Ext2`, `Node`, `SuperBlock`, `BlockGroup`, `NodeData`, path lookup that follows symbolic links |
| `minikern.sync` | `Atomic`, `SpinLock`, `BlockingLock`, `Barrier`, `ReusableBarrier`, `Condition`, `BoundedBuffer`, `Future`, `future` and `stream` |
| `minikern.process` | `Process` tables for files, semaphores and children with `fork`, `wait` and `close`; the `File` interface |
| `minikern.config` | ACPI/MADT discovery over a memory image: `config_init`, `find_rsd`, `find_sdt`, `mem_above_1m`, and the `Config`, `MemInfo`, `ApicInfo` records |

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Formatting:

```python
from minikern.kformat import sprintf

sprintf("%5d|%-4s|%x", 42, "ab", 255)   # '   42|ab  |ff'
```

Reading a file from an ext2 image:

```python
from pathlib import Path
from minikern.block_io import MemoryDisk
from minikern.ext2 import Ext2

fs = Ext2(MemoryDisk(Path("disk.img").read_bytes(), 512))
node = fs.find(fs.root, "/etc/motd")
if node is not None and node.is_file():
    print(node.read_all(0, node.size_in_bytes()).decode())
```

Running work in the background and collecting the result:

```python
from minikern.sync import future

f = future(lambda: sum(range(10)))
f.get()   # 45
```

Forking a process and waiting for the child:

```python
from minikern.process import Process

parent = Process()
child, child_id = parent.fork()
child.exit(7)
parent.wait(child_id)   # 7
```

Errors the kernel would report by panicking are raised as `KernelPanic`, or as a more
specific exception such as `OutOfFrames`; bad ids and full tables in `Process` raise
`ValueError`, `LookupError` or `RuntimeError`.

## What it does not do

This is a set of library pieces, not a runnable kernel. There is no command to run, no
boot process and no hardware access: disks are byte images (`MemoryDisk`), the display
is an in-memory `Framebuffer`, and configuration is read from a memory image you
supply. The package has no memory heap allocator and does not load executable programs;
`ext2` support is read-only.