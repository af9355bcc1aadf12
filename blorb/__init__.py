"""
# Blorb resource archives for interactive fiction

A blorb bundles the story file of a game together with pictures, sounds and
metadata in a single IFF file. This package reads it lazily: opening a blorb
only validates it and loads the resource index, each resource is decoded
when it's requested.

The format is described declaratively: a file format is made of Chunks,
each one an ordered sequence of Fields (integers, byte strings, arrays of
other chunks) whose sizes can depend on other fields via Dependency.
Unpacking a chunk means reading its fields in order from a Stream.

 - blorb.core, blorb.fields: the declarative machinery
 - blorb.chunks: the chunks of the format and the tables mapping each tag
   to its chunk class
 - blorb.cursor: BlorbCursor, the lazy reader

"""
from .chunks import ResourceUsage
from .cursor import BlorbCursor, open
