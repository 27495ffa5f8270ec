"""compspec - command line completion driven by a small grammar DSL.

A driver describes a command with grammar tokens, which are compiled into a
Grammar. The typed words are interpreted against it, and the action found
under the cursor is turned into suggestions, possibly by the driver's own
resolvers. Drivers for the nix-* and nixos-* tools are bundled.
"""
