"""bdw — typed adapter and CLI for the bd (beads) issue tracker."""
