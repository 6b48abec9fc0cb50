# =============================================================================
# PROTEOMICS IMPUTATION CONFIGURATION
# Generated: 2025-09-10 14:02:31
# Analysis: Missingness simulation and imputation
# =============================================================================

# =============================================================================
# 1. INPUT FILES AND PATHS
# =============================================================================
raw_data_file = 'proteinGroups.txt'
output_dir = 'results'
metadata_file = 'sample_metadata.csv'
sample_column = 'Sample'
id_column = 'Protein IDs'
intensity_pattern = 'LFQ intensity '
remove_common_prefix = True

# =============================================================================
# 2. QUALITY FILTERING
# =============================================================================
filter_contaminants = True
contaminant_column = 'Potential contaminant'
contaminant_marker = '+'
reverse_column = 'Reverse'
reverse_marker = '+'
site_column = 'Only identified by site'
max_missing_fraction = 0.5

# =============================================================================
# 3. TRANSFORMATION
# =============================================================================
log_base = 2

# =============================================================================
# 4. MISSINGNESS SIMULATION
# =============================================================================
missing_proportions = [0.1, 0.2, 0.3]
missing_mechanisms = ['MCAR', 'MAR', 'MNAR']

# =============================================================================
# 5. IMPUTATION STRATEGIES
# =============================================================================
imputation_strategies = ['mean', 'median', 'knn', 'bpca', 'missforest']
knn_neighbors = 5
bpca_components = None
bpca_max_iter = 100
missforest_estimators = 100
missforest_max_iter = 10
dae_hidden_dim = 64
dae_epochs = 200
dae_corruption = 0.2
dae_learning_rate = 0.001

# =============================================================================
# 6. REPORTING
# =============================================================================
plot_heatmaps = True

# =============================================================================
# 7. DOWNSTREAM ML AND REPRODUCIBILITY
# =============================================================================
test_size = 0.2
random_seed = 42
